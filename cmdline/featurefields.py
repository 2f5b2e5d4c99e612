#! python
# coding: utf-8

from arcfeature.cmdline import featurefields

if __name__ == "__main__":
    featurefields()
