import sys

from suffixbot.cli import main

sys.exit(main())
