import sys

from motionscroll.cli import main

sys.exit(main())
