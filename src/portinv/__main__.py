import sys

from portinv.cli import main

sys.exit(main())
