"""Entry point for koban CLI."""

import logging
import sys

from koban.cli import build_parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if getattr(args, "debug", False) else logging.WARNING,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
