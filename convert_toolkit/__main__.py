import sys

from convert_toolkit.cli import main

sys.exit(main())
