from __future__ import annotations

from shunt.cli import main

raise SystemExit(main())
