from emberpack.cli import main

raise SystemExit(main())
