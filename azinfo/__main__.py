import sys

from azinfo.main import main

sys.exit(main())
