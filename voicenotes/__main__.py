"""Allow ``python -m voicenotes``."""
import sys

from .cli import main

sys.exit(main())
