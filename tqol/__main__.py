import sys

from tqol.cli import main

sys.exit(main())
