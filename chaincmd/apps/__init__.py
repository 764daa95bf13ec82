# -*- coding: utf-8 -*-
"""Front-ends: terminal (`cli`) and HTTP (`api`)."""
