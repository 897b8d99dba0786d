from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from geranium_locsim.core.coord_transform import gcj02_to_wgs84, wgs84_to_gcj02
from geranium_locsim.core.enums import DeepLinkHost
from geranium_locsim.core.models import Coordinate, LocationPoint
from geranium_locsim.locsim.config import load_runtime_config
from geranium_locsim.locsim.extractor import extract_coordinate, parse_coordinate_text
from geranium_locsim.locsim.logging_setup import apply_settings_level
from geranium_locsim.locsim.runtime import LocSimRuntime, build_runtime


def register_subcommands(sub: argparse._SubParsersAction) -> None:
    def add_global_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--debug",
            dest="debug",
            action="store_true",
            help="Enable verbose debug logs",
        )

    def add_point_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--lat", type=float, required=True, help="Latitude in degrees")
        p.add_argument("--lon", type=float, required=True, help="Longitude in degrees")

    start = sub.add_parser("start", help="Start simulating a location")
    add_global_args(start)
    add_point_args(start)
    start.add_argument("--alt", type=float, default=0.0, help="Altitude in meters")
    start.add_argument("--label", default=None, help="Display label")
    start.add_argument("--note", default=None, help="Secondary description")
    start.add_argument(
        "--gcj02",
        action="store_true",
        help="Coordinates are GCJ-02 (as read off a China map) and must be converted",
    )

    stop = sub.add_parser("stop", help="Stop simulating and clear the persisted record")
    add_global_args(stop)

    status = sub.add_parser("status", help="Show the current simulation state")
    add_global_args(status)
    status.add_argument("--json", action="store_true", help="Print machine-readable output")

    reconcile = sub.add_parser(
        "reconcile", help="Check the persisted record against a live GPS reading"
    )
    add_global_args(reconcile)
    reconcile.add_argument(
        "--fix-timeout", type=float, default=5.0, help="Seconds to wait for a GPS fix"
    )

    open_url = sub.add_parser("open-url", help="Handle a geranium:// deep link")
    add_global_args(open_url)
    open_url.add_argument("url", help="Deep link to handle")

    parse = sub.add_parser("parse", help="Extract a coordinate from a map URL or typed text")
    add_global_args(parse)
    parse.add_argument("text", help="Map URL or 'lat, lon' text")

    search = sub.add_parser("search", help="Search for a place or typed coordinate")
    add_global_args(search)
    search.add_argument("query", help="Place name or 'lat, lon' text")
    search.add_argument(
        "--start",
        type=int,
        default=None,
        metavar="N",
        help="Start simulating result N (1-based; ignored for coordinates)",
    )

    convert = sub.add_parser("convert", help="Convert between WGS-84 and GCJ-02")
    add_global_args(convert)
    add_point_args(convert)
    convert.add_argument("--to", choices=["gcj02", "wgs84"], required=True)

    bookmarks = sub.add_parser("bookmarks", help="Manage bookmarked locations")
    add_global_args(bookmarks)
    bm_sub = bookmarks.add_subparsers(dest="bookmarks_command", required=True)
    bm_sub.add_parser("list", help="List bookmarks")
    bm_add = bm_sub.add_parser("add", help="Add a bookmark")
    add_point_args(bm_add)
    bm_add.add_argument("--name", required=True, help="Bookmark name")
    bm_add.add_argument("--note", default=None, help="Secondary description")
    bm_use = bm_sub.add_parser("use", help="Select a bookmark (stops it if already in use)")
    bm_use.add_argument("bookmark", help="Bookmark name or id")
    bm_use.add_argument(
        "--no-start", action="store_true", help="Only select, do not start simulating"
    )
    bm_remove = bm_sub.add_parser("remove", help="Delete a bookmark")
    bm_remove.add_argument("bookmark", help="Bookmark name or id")

    share_link = sub.add_parser("share-link", help="Build a shareable spoof link")
    add_global_args(share_link)
    add_point_args(share_link)
    share_link.add_argument("--qr", default=None, help="Also write a QR code image to PATH")
    share_link.add_argument(
        "--show-qr", action="store_true", help="Also print the QR code to the terminal"
    )

    share = sub.add_parser("share", help="Hand a map URL to the main process")
    add_global_args(share)
    share.add_argument("url", help="Map URL to share")

    inbox = sub.add_parser("inbox", help="Process a pending shared map URL")
    add_global_args(inbox)

    export = sub.add_parser("export-logs", help="Export application logs for bug reports")
    export.add_argument(
        "-o",
        "--output",
        default=None,
        help="Write logs to file (default: stdout)",
    )


def _debug(enabled: bool, message: str) -> None:
    if enabled:
        print(f"[debug] {message}", flush=True)


def _point_dict(point: LocationPoint | None) -> dict[str, Any] | None:
    if point is None:
        return None
    return {
        "lat": point.latitude,
        "lon": point.longitude,
        "altitude": point.altitude,
        "label": point.label,
        "note": point.note,
    }


def _print_status(runtime: LocSimRuntime, *, as_json: bool = False) -> None:
    controller = runtime.controller
    status = controller.status()
    error = controller.session.last_error
    if as_json:
        print(
            json.dumps(
                {
                    "active": status.is_active,
                    "title": status.title,
                    "detail": status.detail,
                    "point": _point_dict(controller.session.active_point),
                    "error": str(error) if error else None,
                }
            )
        )
        return
    print(status.title)
    print(f"  {status.detail}")
    if error is not None:
        print(f"  last error: {error.message}")


def _run_start(runtime: LocSimRuntime, args: argparse.Namespace) -> int:
    point = LocationPoint(
        coordinate=Coordinate(args.lat, args.lon),
        altitude=args.alt,
        label=args.label,
        note=args.note,
        needs_coordinate_transform=args.gcj02,
    )
    if not point.coordinate.is_valid:
        print(f"error: coordinate out of range: {args.lat}, {args.lon}")
        return 1
    controller = runtime.controller
    controller.select(point)
    if not controller.start_selected():
        print(f"error: {controller.error_message}")
        return 1
    _print_status(runtime)
    return 0


def _run_reconcile(runtime: LocSimRuntime, args: argparse.Namespace) -> int:
    _debug(args.debug, f"waiting up to {args.fix_timeout}s for a GPS fix")
    runtime.read_live_reading(args.fix_timeout)
    live = runtime.controller.live_reading()
    point = runtime.controller.startup()
    print(
        json.dumps(
            {
                "live": list(live.as_tuple()) if live else None,
                "restored": point is not None,
                "point": _point_dict(point),
            }
        )
    )
    return 0


async def _run_open_url(runtime: LocSimRuntime, url: str) -> int:
    controller = runtime.controller
    request = controller.handle_url(url)
    if request is None:
        print(f"error: not an actionable link: {url}")
        return 1
    if request.host is DeepLinkHost.BOOKMARKS:
        _print_bookmarks(runtime)
        return 0
    if controller.error_message:
        print(f"error: {controller.error_message}")
        return 1
    if request.host is DeepLinkHost.PROCESS_MAP_URL and request.point is not None:
        bookmark = await controller.finish_shared_location(request.point)
        print(json.dumps({"status": "bookmarked", "name": bookmark.name, "id": bookmark.bookmark_id}))
    _print_status(runtime)
    return 0


def _run_parse(text: str) -> int:
    extracted = extract_coordinate(text)
    if extracted is not None:
        coordinate = extracted.coordinate
        source = "url"
    else:
        parsed = parse_coordinate_text(text)
        if parsed is None:
            print(f"error: no coordinate found in {text!r}")
            return 1
        coordinate = parsed
        source = "text"
    print(json.dumps({"lat": coordinate.latitude, "lon": coordinate.longitude, "source": source}))
    return 0


async def _run_search(runtime: LocSimRuntime, args: argparse.Namespace) -> int:
    controller = runtime.controller
    results = await controller.search(args.query) or []
    if controller.selected_location is not None:
        point = _point_dict(controller.selected_location)
        print(json.dumps({"match": "coordinate", "point": point}))
        return 0
    if not results:
        print(json.dumps({"status": "empty", "query": args.query}))
        return 0
    for index, result in enumerate(results, start=1):
        print(
            json.dumps(
                {
                    "index": index,
                    "title": result.title,
                    "subtitle": result.subtitle,
                    "lat": result.coordinate.latitude,
                    "lon": result.coordinate.longitude,
                },
                ensure_ascii=False,
            )
        )
    if args.start is None:
        return 0
    if not 1 <= args.start <= len(results):
        print(f"error: no result {args.start} (have {len(results)})")
        return 1
    if not controller.select_search_result(results[args.start - 1], start=True):
        print(f"error: {controller.error_message}")
        return 1
    _print_status(runtime)
    return 0


def _run_convert(args: argparse.Namespace) -> int:
    coordinate = Coordinate(args.lat, args.lon)
    converted = wgs84_to_gcj02(coordinate) if args.to == "gcj02" else gcj02_to_wgs84(coordinate)
    print(json.dumps({"lat": converted.latitude, "lon": converted.longitude, "datum": args.to}))
    return 0


def _print_bookmarks(runtime: LocSimRuntime) -> None:
    last_used = runtime.bookmarks.last_used_id()
    for bookmark in runtime.bookmarks.get_all():
        marker = "*" if bookmark.bookmark_id == last_used else " "
        note = f"  {bookmark.note}" if bookmark.note else ""
        print(
            f"{marker} {bookmark.bookmark_id[:8]}  {bookmark.name}  "
            f"{bookmark.coordinate.latitude:.6f}, {bookmark.coordinate.longitude:.6f}{note}"
        )


def _run_bookmarks(runtime: LocSimRuntime, args: argparse.Namespace) -> int:
    store = runtime.bookmarks
    command = args.bookmarks_command
    if command == "list":
        _print_bookmarks(runtime)
        return 0
    if command == "add":
        coordinate = Coordinate(args.lat, args.lon)
        if not coordinate.is_valid:
            print(f"error: coordinate out of range: {args.lat}, {args.lon}")
            return 1
        bookmark = store.add(args.name, coordinate, args.note)
        print(json.dumps({"status": "added", "id": bookmark.bookmark_id, "name": bookmark.name}))
        return 0

    bookmark = store.find(args.bookmark)
    if bookmark is None:
        print(f"error: no bookmark named {args.bookmark!r}")
        return 1
    if command == "remove":
        store.delete(bookmark.bookmark_id)
        print(json.dumps({"status": "removed", "id": bookmark.bookmark_id}))
        return 0
    if command == "use":
        controller = runtime.controller
        controller.startup()
        if args.no_start:
            controller.focus_bookmark(bookmark, auto_start=False)
        else:
            controller.select_bookmark(bookmark)
        if controller.error_message:
            print(f"error: {controller.error_message}")
            return 1
        _print_status(runtime)
        return 0
    raise RuntimeError(f"Unsupported bookmarks command: {command}")


def _run_share_link(args: argparse.Namespace) -> int:
    from geranium_locsim.locsim.share import build_spoof_link, print_share_qr, share_qr

    point = LocationPoint(coordinate=Coordinate(args.lat, args.lon), needs_coordinate_transform=False)
    print(build_spoof_link(point))
    if args.qr:
        path = share_qr(point, args.qr)
        print(f"QR code written to {path}")
    if args.show_qr:
        print_share_qr(point)
    return 0


async def _run_inbox(runtime: LocSimRuntime, debug: bool) -> int:
    link = runtime.inbox.take()
    if link is None:
        _debug(debug, "no shared URL pending")
        print(json.dumps({"status": "empty"}))
        return 0
    _debug(debug, f"processing {link}")
    return await _run_open_url(runtime, link)


def _export_logs(output: str | None) -> int:
    from geranium_locsim.locsim.logging_setup import export_logs_to_path, export_logs_to_stdout

    if output:
        export_logs_to_path(output)
        print(f"Logs written to {output}")
    else:
        export_logs_to_stdout()
    return 0


async def _async_main(args: argparse.Namespace) -> int:
    if args.command == "export-logs":
        return _export_logs(args.output)

    _debug(args.debug, f"command={args.command}")
    if args.command == "parse":
        return _run_parse(args.text)
    if args.command == "convert":
        return _run_convert(args)
    if args.command == "share-link":
        return _run_share_link(args)

    config = load_runtime_config()
    if args.command == "search":
        # One query per invocation
        config.search_debounce_s = 0.0
    _debug(args.debug, f"config: {config.to_log_string()}")
    runtime = build_runtime(config)
    if not args.debug:
        apply_settings_level(runtime.controller.settings.log_level)
    try:
        if args.command == "share":
            runtime.inbox.submit(args.url)
            print(json.dumps({"status": "submitted", "url": args.url}))
            return 0
        if args.command == "inbox":
            runtime.controller.startup()
            return await _run_inbox(runtime, args.debug)
        if args.command == "start":
            return _run_start(runtime, args)
        if args.command == "stop":
            runtime.controller.stop()
            _print_status(runtime)
            return 0
        if args.command == "status":
            runtime.controller.startup()
            _print_status(runtime, as_json=args.json)
            return 0
        if args.command == "reconcile":
            return _run_reconcile(runtime, args)
        if args.command == "open-url":
            runtime.controller.startup()
            return await _run_open_url(runtime, args.url)
        if args.command == "bookmarks":
            return _run_bookmarks(runtime, args)
        if args.command == "search":
            return await _run_search(runtime, args)
    finally:
        runtime.close()
    raise RuntimeError(f"Unsupported command: {args.command}")


def run(args: argparse.Namespace) -> int:
    return asyncio.run(_async_main(args))
