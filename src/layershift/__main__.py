import sys

from layershift.cli import main

sys.exit(main())
