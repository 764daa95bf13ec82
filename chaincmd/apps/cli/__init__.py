# -*- coding: utf-8 -*-
"""Terminal front-end: argv -> Dispatcher -> rich output."""
