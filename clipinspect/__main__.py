import sys

from clipinspect.main import main

sys.exit(main())
