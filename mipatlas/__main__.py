import sys

from mipatlas.app import main

sys.exit(main())
