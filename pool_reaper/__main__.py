import sys

from pool_reaper.handler import main

sys.exit(main())
