from clipqueue.cli import main

raise SystemExit(main())
