import sys

from platehandler.cli import main

sys.exit(main())
