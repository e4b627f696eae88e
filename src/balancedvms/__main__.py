from balancedvms.main import main

raise SystemExit(main())
