import sys

from skelgen.cli import main

sys.exit(main())
