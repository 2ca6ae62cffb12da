from muxic.cli import main

raise SystemExit(main())
