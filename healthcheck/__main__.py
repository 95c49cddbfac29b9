from healthcheck.main import main

raise SystemExit(main())
