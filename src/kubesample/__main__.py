import sys

from kubesample.cli import main

sys.exit(main())
