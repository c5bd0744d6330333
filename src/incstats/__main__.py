import sys

from incstats.cli import main

sys.exit(main())
