import sys

from nlopt.cli import main

sys.exit(main())
