from __future__ import annotations

import argparse
import importlib.metadata
import traceback


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="geranium-locsim",
        description="Location simulation with WGS-84/GCJ-02 handling and crash recovery",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=importlib.metadata.version("geranium-locsim"),
    )

    sub = parser.add_subparsers(dest="command", required=True)

    from geranium_locsim.cli import register_subcommands

    register_subcommands(sub)

    args = parser.parse_args(argv)

    from geranium_locsim.locsim.logging_setup import configure_logging

    configure_logging("DEBUG" if getattr(args, "debug", False) else None)

    from geranium_locsim.cli import run

    try:
        return run(args)
    except Exception as exc:  # noqa: BLE001
        if getattr(args, "debug", False):
            print(f"[debug] error: {exc}")
            traceback.print_exc()
        else:
            print(f"error: {exc}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
