import sys

from src.bootstrap.cli import main

sys.exit(main())
