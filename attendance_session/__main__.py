import sys

from attendance_session.cli import main

sys.exit(main())
