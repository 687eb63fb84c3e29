import sys

from archive_urls.cli import main

sys.exit(main())
