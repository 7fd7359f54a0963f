#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Print custom-font text onto Avery A4 label sheets.
"""

import avery_label_maker.cli


if __name__ == "__main__":
	avery_label_maker.cli.main()
