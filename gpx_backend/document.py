"""
GPX document assembly.

The assembler shapes the data and hands it to a template; the template owns
the markup. GpxTemplate is the default template and writes GPX 1.1 waypoints,
which location simulators replay in order.
"""

import logging
import re
from datetime import datetime
from typing import Optional, Protocol, Sequence
from xml.etree.ElementTree import Element, SubElement, indent, tostring

from .errors import RenderError
from .models import PathPoint

logger = logging.getLogger(__name__)

DATETIME_FORMAT = "%Y/%m/%d %H:%M:%S"

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
GPX_CREATOR = "gpx-backend"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Characters XML 1.0 does not allow in text
_XML_ILLEGAL_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def now_string(now: Optional[datetime] = None) -> str:
    """Timestamp in the fixed, locale-independent YYYY/MM/DD HH:mm:ss format."""
    return (now or datetime.now()).strftime(DATETIME_FORMAT)


class RouteTemplate(Protocol):
    def render(self, title: str, timestamp: str, points: Sequence[PathPoint]) -> str:
        ...


class GpxTemplate:
    """Renders every point as a <wpt>; anchors get a <name> and both roles a <type>."""

    def __init__(self, creator: str = GPX_CREATOR):
        self.creator = creator

    def render(self, title: str, timestamp: str, points: Sequence[PathPoint]) -> str:
        title = _XML_ILLEGAL_CHARS.sub("", title)

        gpx = Element("gpx", {
            "version": "1.1",
            "creator": self.creator,
            "xmlns": GPX_NAMESPACE,
        })

        metadata = SubElement(gpx, "metadata")
        SubElement(metadata, "name").text = title
        SubElement(metadata, "desc").text = timestamp

        anchor_number = 0
        for point in points:
            wpt = SubElement(gpx, "wpt", {
                "lat": repr(point.lat),
                "lon": repr(point.lng),
            })
            if point.marked:
                anchor_number += 1
                SubElement(wpt, "name").text = f"{title} {anchor_number}"
                SubElement(wpt, "type").text = "anchor"
            else:
                SubElement(wpt, "type").text = "interpolated"

        indent(gpx, space="  ")
        return XML_DECLARATION + tostring(gpx, encoding="unicode") + "\n"


def _strip_blank_lines(text: str) -> str:
    """Drop lines that hold nothing but whitespace."""
    return "".join(line for line in text.splitlines(keepends=True) if line.strip())


def assemble(
    title: str,
    timestamp: str,
    points: Sequence[PathPoint],
    template: Optional[RouteTemplate] = None,
) -> str:
    """
    Render the route document for `points`.

    `marked` reaches the template untouched so it can tell anchors from
    interpolated points. Titles are not validated. Any template failure is
    raised as RenderError.
    """
    template = template or GpxTemplate()
    logger.debug("[RENDER] '%s' with %d points", title, len(points))
    try:
        rendered = template.render(title, timestamp, points)
    except Exception as e:
        raise RenderError(f"failed to render GPX document: {e}") from e

    return _strip_blank_lines(rendered)
