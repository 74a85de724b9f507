from research_stream.cli import main

raise SystemExit(main())
