import sys

from readbench.benchmark import main

sys.exit(main())
