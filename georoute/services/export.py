from __future__ import annotations

import csv
import io
import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, NamedTuple, Optional, Sequence
from uuid import uuid4
from xml.dom import minidom
from xml.etree.ElementTree import Element, SubElement, tostring

from georoute.models.locations import PinnedLocation
from georoute.models.routes import SavedRoute
from georoute.services.geo import is_valid_coordinate
from georoute.services.pinned import PinnedLocationStore, pinned_location_store

logger = logging.getLogger(__name__)

CSV_HEADER = ("coord", "name")


class CsvPoint(NamedTuple):
    lat: float
    lng: float
    name: str


def _iso(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ExportService:
    @staticmethod
    def generate_gpx(route: SavedRoute) -> str:
        gpx = Element('gpx', {
            'version': '1.1',
            'creator': 'GeoRoute',
            'xmlns': 'http://www.topografix.com/GPX/1/1',
            'xmlns:xsi': 'http://www.w3.org/2001/XMLSchema-instance',
            'xsi:schemaLocation': 'http://www.topografix.com/GPX/1/1 http://www.topografix.com/GPX/1/1/gpx.xsd',
        })

        metadata = SubElement(gpx, 'metadata')
        SubElement(metadata, 'name').text = route.name
        SubElement(metadata, 'desc').text = (
            f"{route.travel_mode.value}: {route.route_info.distance}, "
            f"{route.route_info.duration}, {route.route_info.cost}"
        )
        SubElement(metadata, 'time').text = _iso(route.saved_at)

        stops = [("Origin", route.origin)]
        stops += [(f"Via {i}", wp) for i, wp in enumerate(route.waypoints, start=1)]
        stops.append(("Destination", route.destination))
        for label, point in stops:
            wpt = SubElement(gpx, 'wpt', {'lat': str(point.lat), 'lon': str(point.lng)})
            SubElement(wpt, 'name').text = label
            if point.address:
                SubElement(wpt, 'desc').text = point.address

        trk = SubElement(gpx, 'trk')
        SubElement(trk, 'name').text = route.name
        SubElement(trk, 'type').text = route.travel_mode.value
        trkseg = SubElement(trk, 'trkseg')
        for lat, lng in route.geometry:
            SubElement(trkseg, 'trkpt', {'lat': str(lat), 'lon': str(lng)})

        xml_str = tostring(gpx, encoding='unicode')
        dom = minidom.parseString(xml_str)
        return dom.toprettyxml(indent='  ')

    @staticmethod
    def generate_csv(locations: Sequence[PinnedLocation]) -> str:
        buffer = io.StringIO()
        buffer.write(",".join(CSV_HEADER) + "\n")
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        for location in locations:
            name = location.display_name or location.address or location.original_text or ""
            writer.writerow([f"{location.lat},{location.lng}", name])
        return buffer.getvalue()

    @staticmethod
    def parse_csv(content: str) -> List[CsvPoint]:
        """Parse ``coord,name`` rows; unreadable or out-of-range rows are skipped."""
        lines = [(number, line) for number, line in enumerate(content.splitlines(), start=1) if line.strip()]
        if lines and "coord" in lines[0][1].lower():
            lines = lines[1:]

        points: List[CsvPoint] = []
        for line_number, line in lines:
            row = next(csv.reader([line]), [])
            cells = [cell.strip() for cell in row]
            if cells and "," in cells[0]:
                lat_str, lng_str = (part.strip() for part in cells[0].split(",", 1))
                name_cells = cells[1:]
            elif len(cells) >= 2:
                lat_str, lng_str = cells[0], cells[1]
                name_cells = cells[2:]
            else:
                logger.warning("Skipping CSV line %s: no coordinate", line_number)
                continue

            try:
                lat, lng = float(lat_str), float(lng_str)
            except ValueError:
                logger.warning("Invalid coordinates on CSV line %s: %r", line_number, cells[0])
                continue
            if not is_valid_coordinate(lat, lng):
                logger.warning("Coordinates out of range on CSV line %s: %s, %s", line_number, lat, lng)
                continue

            name = ",".join(name_cells).strip() or f"Point {line_number}"
            points.append(CsvPoint(lat, lng, name))
        return points

    @staticmethod
    def import_csv(
        content: str,
        store: Optional[PinnedLocationStore] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> int:
        store = store or pinned_location_store
        clock = clock or (lambda: int(time.time() * 1000))
        imported = 0
        for point in ExportService.parse_csv(content):
            location = PinnedLocation(
                id=f"csv-import-{point.lat}-{point.lng}-{clock()}-{uuid4().hex[:7]}",
                lat=point.lat,
                lng=point.lng,
                original_text=point.name,
                display_name=point.name,
            )
            if store.add(location) is not None:
                imported += 1
        logger.info("Imported %s point(s) from CSV", imported)
        return imported


export_service = ExportService()
