"""Entry point: python -m fstabgen [DIR [EARLY LATE]]"""

import os
import sys
from typing import List, Optional

from .cli import parse_args
from .context import make_context
from .log import configure_logging
from .pipeline import run_all


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()
    os.umask(0o022)

    ctx = make_context(args.dest, root=args.root)
    report = run_all(ctx)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
