import sys

from stagetrim.cli import main

sys.exit(main())
