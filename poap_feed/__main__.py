import sys

from poap_feed.app import main


sys.exit(main())
