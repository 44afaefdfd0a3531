import sys

from authz_matrix.driver import main

sys.exit(main())
