import sys

from blob_stream.cli import main

sys.exit(main())
