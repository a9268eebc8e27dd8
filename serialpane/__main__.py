from serialpane.monitor import main

raise SystemExit(main())
