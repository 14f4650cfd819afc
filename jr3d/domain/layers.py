"""
2D layer composition - 2D 图层

Layers sort against the 3D scene by ``priority`` (>0 in front, 0 inline,
<0 behind).  Only 2D layers carry child elements.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type


@dataclass
class Element2DPosition:
    x: float = 0.0
    y: float = 0.0
    unit: str = "px"            # "px" | "percent"


@dataclass
class Element2DSize:
    width: float = 100.0
    height: float = 100.0
    unit: str = "px"


@dataclass
class Element2D:
    id: str
    name: str = ""
    visible: bool = True
    locked: bool = False
    opacity: float = 1.0
    z_index: int = 0
    position: Element2DPosition = field(default_factory=Element2DPosition)
    size: Element2DSize = field(default_factory=Element2DSize)
    rotation: float = 0.0
    created_at: int = 0
    updated_at: int = 0

    type = "base"


@dataclass
class ImageElement2D(Element2D):
    # data URL, remote URL, BinaryFile or pygame.Surface
    src: Any = ""
    object_fit: str = "contain"
    border_radius: float = 0.0
    filter: Optional[str] = None

    type = "image"


@dataclass
class TextElement2D(Element2D):
    content: str = ""
    font_size: int = 24
    font_family: str = "sans-serif"
    font_weight: int = 400
    color: str = "#ffffff"
    text_align: str = "left"
    line_height: float = 1.2
    text_shadow: Optional[str] = None
    show_background: bool = False

    type = "text"


@dataclass
class ShapeElement2D(Element2D):
    shape: str = "rect"
    fill_color: str = "#ffffff"
    stroke_color: str = "#000000"
    stroke_width: float = 0.0
    stroke_dasharray: Optional[str] = None

    type = "shape"


@dataclass
class HtmlElement2D(Element2D):
    html: str = ""
    css: Optional[str] = None

    type = "html"


@dataclass
class SpineElement2D(Element2D):
    spine_instance_id: str = ""
    scale: float = 1.0
    flip_x: bool = False
    flip_y: bool = False

    type = "spine"


ELEMENT_TYPES: Dict[str, Type[Element2D]] = {
    cls.type: cls
    for cls in (ImageElement2D, TextElement2D, ShapeElement2D, HtmlElement2D, SpineElement2D)
}


@dataclass
class Layer:
    id: str
    name: str
    type: str = "2d"            # "2d" | "3d"
    priority: int = 1
    visible: bool = True
    locked: bool = False
    expanded: bool = True
    opacity: float = 1.0
    children: List[Element2D] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0
