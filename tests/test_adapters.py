"""
Tests for byte-source adapters and resource fetchers.
"""
import pytest


class TestDataUrls:
    """测试 data URL 处理"""

    def test_parse_base64(self):
        from jr3d.adapters.images import parse_data_url

        mime, payload = parse_data_url("data:image/png;base64,SGVsbG8=")
        assert mime == "image/png"
        assert payload == b"Hello"

    def test_parse_plain(self):
        from jr3d.adapters.images import parse_data_url

        assert parse_data_url("data:,a%20b") == ("text/plain", b"a b")

    def test_parse_invalid(self):
        from jr3d.adapters.images import parse_data_url

        with pytest.raises(ValueError):
            parse_data_url("https://example.com/a.png")

    def test_to_data_url(self):
        from jr3d.adapters.images import parse_data_url, to_data_url

        url = to_data_url(b"\xff\xd8\xff", "photo.JPG")
        assert url.startswith("data:image/jpeg;base64,")
        assert parse_data_url(url)[1] == b"\xff\xd8\xff"

    def test_source_extension(self):
        from jr3d.adapters.images import source_extension
        from jr3d.domain import BinaryFile

        assert source_extension("data:image/webp;base64,AA==") == "webp"
        assert source_extension(BinaryFile("a.TGA", b"")) == "tga"
        assert source_extension(b"raw") == "png"


class TestSurfaces:
    """测试 pygame Surface 编码"""

    def test_surface_to_png(self):
        import pygame

        from jr3d.adapters.images import is_extractable, read_bytes, source_extension

        surface = pygame.Surface((4, 4))
        surface.fill((255, 0, 0))
        data = read_bytes(surface)
        assert data.startswith(b"\x89PNG\r\n\x1a\n")
        assert is_extractable(surface)
        assert source_extension(surface) == "png"

    def test_read_bytes_variants(self):
        from jr3d.adapters.images import is_extractable, read_bytes
        from jr3d.domain import BinaryFile

        assert read_bytes(b"x") == b"x"
        assert read_bytes(bytearray(b"y")) == b"y"
        assert read_bytes(BinaryFile("a.png", b"z")) == b"z"
        assert read_bytes("atlas text") == b"atlas text"
        assert read_bytes(None) is None
        assert not is_extractable("https://example.com/a.png")


class TestFetchers:
    """测试资源获取器选择"""

    def test_make_fetcher(self):
        from jr3d.adapters import FileSystemResourceFetcher, HttpResourceFetcher, make_fetcher

        assert make_fetcher(None) is None
        assert make_fetcher("") is None
        assert isinstance(make_fetcher("https://cdn.example.com/effekseer"), HttpResourceFetcher)
        assert isinstance(make_fetcher("public/effekseer"), FileSystemResourceFetcher)

    def test_http_failure(self):
        """测试网络错误转为 RemoteFetchError"""
        import urllib.error
        from unittest.mock import patch

        from jr3d.adapters import HttpResourceFetcher
        from jr3d.project.errors import RemoteFetchError

        fetcher = HttpResourceFetcher("https://cdn.example.com/fx", timeout=1.0)
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("offline")):
            with pytest.raises(RemoteFetchError) as exc:
                fetcher.fetch("Laser01/Laser01.efkefc")
        assert exc.value.path == "Laser01/Laser01.efkefc"

    def test_http_incomplete_read(self):
        """测试响应被截断时转为 RemoteFetchError"""
        import http.client
        from unittest.mock import MagicMock, patch

        from jr3d.adapters import HttpResourceFetcher
        from jr3d.project.errors import RemoteFetchError

        response = MagicMock()
        response.read.side_effect = http.client.IncompleteRead(b"EF", 10)
        response.__enter__.return_value = response
        fetcher = HttpResourceFetcher("https://cdn.example.com/fx")
        with patch("urllib.request.urlopen", return_value=response):
            with pytest.raises(RemoteFetchError):
                fetcher.fetch("Laser01/Laser01.efkefc")
            outcomes = fetcher.fetch_all(["Laser01/Laser01.efkefc", "Laser01/glow.png"])
        assert [p for p, _ in outcomes] == ["Laser01/Laser01.efkefc", "Laser01/glow.png"]
        assert all(isinstance(r, RemoteFetchError) for _, r in outcomes)

    def test_http_success(self):
        from unittest.mock import MagicMock, patch

        from jr3d.adapters import HttpResourceFetcher

        response = MagicMock()
        response.read.return_value = b"EFK"
        response.__enter__.return_value = response
        with patch("urllib.request.urlopen", return_value=response) as urlopen:
            data = HttpResourceFetcher("https://cdn.example.com/fx/").fetch("/Laser 01/a.efkefc")
        assert data == b"EFK"
        request = urlopen.call_args[0][0]
        assert request.full_url == "https://cdn.example.com/fx/Laser%2001/a.efkefc"


class TestLedger:
    """测试 ID 映射表"""

    def test_record_and_lookup(self):
        from jr3d.project import IdRemapLedger

        ledger = IdRemapLedger()
        ledger.record_model("m_old", "m_new")
        ledger.record_clip("c_old", "c_new")
        ledger.record_spine("s_old", "s_new")
        assert ledger.model("m_old") == "m_new"
        assert ledger.model("missing") is None
        assert ledger.model(None) is None
        assert ledger.clip_or_stale("c_old") == "c_new"
        assert ledger.clip_or_stale("c_gone") == "c_gone"
        assert ledger.spine("s_old") == "s_new"

    def test_separate_instances(self):
        """测试每次导入使用独立的映射表"""
        from jr3d.project import IdRemapLedger

        a = IdRemapLedger()
        a.record_model("x", "y")
        assert IdRemapLedger().model_ids == {}

    def test_insertion_order(self):
        from jr3d.project import IdRemapLedger

        ledger = IdRemapLedger()
        for i in (3, 1, 2):
            ledger.record_clip(f"old{i}", f"new{i}")
        assert list(ledger.clip_ids) == ["old3", "old1", "old2"]
