from clientgen.cli import main

raise SystemExit(main())
