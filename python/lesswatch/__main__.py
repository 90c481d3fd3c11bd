import sys

from lesswatch.cli import main

sys.exit(main())
