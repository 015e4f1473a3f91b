import sys

from malisp.repl import main

sys.exit(main())
