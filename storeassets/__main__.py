import sys

from storeassets.main import main

sys.exit(main())
