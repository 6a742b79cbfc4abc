from rinkai.cli import main

raise SystemExit(main())
