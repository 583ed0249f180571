import sys

from job_crawler.main import main

sys.exit(main())
