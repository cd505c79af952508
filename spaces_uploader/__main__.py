import sys

from spaces_uploader.cli import main

sys.exit(main())
