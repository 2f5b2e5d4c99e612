#! python
# coding: utf-8

from arcfeature.cmdline import featurelayers

if __name__ == "__main__":
    featurelayers()
