from node_redeploy.cli import main

raise SystemExit(main())
