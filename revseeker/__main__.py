import sys

from revseeker.modules.cli import main

sys.exit(main())
