import sys

from oasis_vectors.generate import main

sys.exit(main())
