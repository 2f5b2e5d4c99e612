# coding: utf-8
"""Utility functions for arcfeature"""

import datetime
import operator
import urllib.parse

__all__ = ['timetopythonvalue', 'rowtuple', 'maskedquery']

#: Esri date fields count milliseconds from this moment
EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

numeric = (int, float)
sequence = (list, tuple)

def timetopythonvalue(time_val):
    "Convert a time from ArcGIS REST server format (epoch ms) to Python"
    if time_val is None:
        return None
    elif isinstance(time_val, bool):
        pass
    elif isinstance(time_val, numeric):
        return EPOCH + datetime.timedelta(milliseconds=time_val)
    elif isinstance(time_val, sequence):
        return [timetopythonvalue(x) for x in time_val]
    elif isinstance(time_val, str):
        # Some older services send the number as a string
        try:
            return timetopythonvalue(int(time_val))
        except ValueError:
            pass
    raise ValueError(repr(time_val))

def rowtuple(colnames):
    """Make a tuple type whose items can also be read as attributes named
       after the given columns. Column names that are not valid identifiers
       are only reachable by index."""
    class RowTuple(tuple):
        __slots__ = ()
        _fields = tuple(colnames)
        def __new__(cls, values):
            return tuple.__new__(cls, values)
        def __repr__(self):
            return "(%s)" % ", ".join("%s=%r" % pair
                                      for pair in zip(self._fields, self))
    for i, col in enumerate(colnames):
        if col.isidentifier() and not hasattr(tuple, col):
            setattr(RowTuple, col, property(operator.itemgetter(i)))
    return RowTuple

def maskedquery(url):
    "Return the URL with any token value blanked out, for logging"
    urllist = list(urllib.parse.urlsplit(url))
    pairs = urllib.parse.parse_qsl(urllist[3], keep_blank_values=True)
    urllist[3] = urllib.parse.urlencode([(k, '***' if k.lower() == 'token'
                                                    else v)
                                         for k, v in pairs])
    return urllib.parse.urlunsplit(urllist)
