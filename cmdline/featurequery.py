#! python
# coding: utf-8

from arcfeature.cmdline import featurequery

if __name__ == "__main__":
    featurequery()
