import sys

from revdeps.cli import main

sys.exit(main())
