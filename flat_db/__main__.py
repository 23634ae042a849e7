import sys

from flat_db.cli import main

sys.exit(main())
