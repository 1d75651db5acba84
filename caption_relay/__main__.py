"""Package entry point for ``python -m caption_relay``.

WHY: Users run ``python -m caption_relay <video>`` without installing the
console script.

RULES:
- Delegates straight to the CLI's main(); exit code comes from main()
"""

import sys

if __name__ == "__main__":
    from caption_relay.cli import main
    sys.exit(main())
