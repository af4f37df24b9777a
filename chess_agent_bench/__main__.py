import sys

from chess_agent_bench.cli import main

sys.exit(main())
