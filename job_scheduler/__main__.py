import sys

from job_scheduler.daemon import main

sys.exit(main())
