#  revseeker CLI
#  Print the git commit recorded in a container image's revision label
import sys

from revseeker.modules.cli import main

if __name__ == "__main__":
    sys.exit(main())
