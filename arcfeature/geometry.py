# coding: utf-8
"""This module implements the JSON geometry and spatial reference objects
   as returned by the REST API. A feature layer publishes one geometry type -
   points, multipoints, polylines, polygons or envelopes - and every feature
   returned from a query carries a geometry of that type.

   Each geometry class is registered under its Esri type name, so the
   geometryType string of a layer description can be looked up in
   L{geometry_types} to get the class features of that layer decode to."""

import json
import math

__all__ = ['Geometry', 'NullGeometry', 'SpatialReference', 'Point',
           'Multipoint', 'Polyline', 'Polygon', 'Envelope', 'geometry_types',
           'fromJson']

#: Esri geometry type name -> geometry class
geometry_types = {}

def coordinate(pt):
    """Check and convert a single [x, y(, z, m)] coordinate array into an
       (x, y) tuple of floats."""
    if isinstance(pt, Point):
        return (pt.x, pt.y)
    if not isinstance(pt, (list, tuple)) or len(pt) < 2:
        raise ValueError("Coordinate not in [x, y] form: %r" % (pt,))
    try:
        x, y = float(pt[0]), float(pt[1])
    except (TypeError, ValueError):
        raise ValueError("Coordinate not numeric: %r" % (pt,))
    if math.isnan(x) or math.isnan(y):
        raise ValueError("Coordinate is empty: %r" % (pt,))
    return (x, y)

def pointlist(points):
    """Convert a list of the form [[x, y] ...] to a list of (x, y) tuples.
       At least one coordinate is required."""
    if not isinstance(points, (list, tuple)) or not points:
        raise ValueError("Expected a non-empty list of coordinates")
    return [coordinate(pt) for pt in points]

def listofpointlist(ptlist):
    """Convert a list of the form [[[x, y] ...] ...] to a list of lists of
       (x, y) tuples. Both the outer list and each inner list must be
       non-empty."""
    if not isinstance(ptlist, (list, tuple)) or not ptlist:
        raise ValueError("Expected a non-empty list of coordinate lists")
    return [pointlist(listofpoints) for listofpoints in ptlist]

class Geometry(object):
    """Represents an abstract base for json-represented geometries on
       the ArcGIS Server REST API. Please refer to
       L{Point<arcfeature.geometry.Point>},
       L{Multipoint<arcfeature.geometry.Multipoint>},
       L{Polygon<arcfeature.geometry.Polygon>},
       L{Polyline<arcfeature.geometry.Polyline>} and
       L{Envelope<arcfeature.geometry.Envelope>} in this module for more
       information on geometry types. Calling the str() operator on any
       geometry subclass will return its Esri JSON."""
    __geometry_type__ = None
    spatialReference = None

    def __init__(self):
        raise NotImplementedError("Cannot instantiate abstract geometry type")
    @classmethod
    def _register_type(cls, subclass):
        geometry_types[subclass.__geometry_type__] = subclass
        return subclass
    def __len__(self):
        raise NotImplementedError("Length not implemented for %r" %
                                   self.__class__.__name__)
    def __eq__(self, other):
        if not isinstance(other, Geometry):
            return NotImplemented
        return (type(self) is type(other) and
                self._json_struct == other._json_struct)
    __hash__ = None
    @property
    def __geo_interface__(self):
        raise NotImplementedError("Unimplemented conversion to GeoJSON")
    @property
    def _json_struct_without_sr(self):
        raise NotImplementedError("Unimplemented conversion to JSON")
    @property
    def _json_struct(self):
        struct = self._json_struct_without_sr
        if self.spatialReference:
            struct['spatialReference'] = self.spatialReference._json_struct
        return struct
    def __str__(self):
        return json.dumps(self._json_struct)
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        raise NotImplementedError("Unimplemented convert from JSON")

class NullGeometry(Geometry):
    "Represents a null or empty geometry."
    def __init__(self, struct=None):
        pass
    def __len__(self):
        return 0
    def __bool__(self):
        return False
    @property
    def __geo_interface__(self):
        return None
    @property
    def _json_struct(self):
        return None
    def __repr__(self):
        return "NULL GEOMETRY"

class SpatialReference(object):
    """The REST API describes a spatial reference by its well-known ID
       (wkid), optionally with the latest wkid the same system goes by, or
       by a well-known text string for systems without an ID.

                >>> import arcfeature
                >>> mysr = arcfeature.geometry.SpatialReference(4326)
                >>> mysr.wkid
                4326
                >>> arcfeature.geometry.SpatialReference(mysr).wkid
                4326
       """
    def __init__(self, wkid=None, latestWkid=None, wkt=None):
        if isinstance(wkid, SpatialReference):
            wkid, latestWkid, wkt = wkid.wkid, wkid.latestWkid, wkid.wkt
        elif isinstance(wkid, dict):
            wkid, latestWkid, wkt = (wkid.get('wkid'),
                                     wkid.get('latestWkid'),
                                     wkid.get('wkt'))
        self.wkid = int(wkid) if wkid is not None else None
        self.latestWkid = int(latestWkid) if latestWkid is not None else None
        self.wkt = wkt
    def __repr__(self):
        if self.wkid is None and self.wkt:
            return "<Spatial Reference %r>" % (self.wkt[:40] + '...')
        return "<Spatial Reference %r>" % self.wkid
    def __bool__(self):
        return bool(self.wkid is not None or self.wkt)
    @property
    def _json_struct(self):
        struct = {}
        if self.wkid is not None:
            struct['wkid'] = self.wkid
        if self.latestWkid is not None:
            struct['latestWkid'] = self.latestWkid
        if self.wkt:
            struct['wkt'] = self.wkt
        return struct
    def __eq__(self, other):
        if isinstance(other, SpatialReference):
            return (self.wkid, self.wkt) == (other.wkid, other.wkt)
        return self.wkid == other
    def __hash__(self):
        return hash((self.wkid, self.wkt))
    @classmethod
    def fromJson(cls, struct):
        if not struct:
            return None
        return cls(struct)

def _spatialreference(sr):
    if sr is None or isinstance(sr, SpatialReference):
        return sr
    return SpatialReference(sr)

@Geometry._register_type
class Point(Geometry):
    """A point contains x and y fields along with a spatialReference field."""
    __geometry_type__ = "esriGeometryPoint"
    def __init__(self, x, y, spatialReference=None):
        """
        @param x: The X coordinate of the Point
        @param y: The Y coordinate of the Point
        @param spatialReference: The spatial reference, either as an instance
               of L{SpatialReference<arcfeature.geometry.SpatialReference>} or
               the WKID of a spatial reference. If left as None, the point
               will not have a spatial reference.

                    >>> arcfeature.geometry.Point(10, 10, 4326)
                    POINT(10.00000 10.00000)
               """
        self.x, self.y = coordinate([x, y])
        self.spatialReference = _spatialreference(spatialReference)
    def __repr__(self):
        return "POINT(%0.5f %0.5f)" % (self.x, self.y)
    def __len__(self):
        return 2
    def __iter__(self):
        yield self.x
        yield self.y
    def __getitem__(self, index):
        return [self.x, self.y][index]
    @property
    def __geo_interface__(self):
        return {
            'type': 'Point',
            'coordinates': (self.x, self.y)
        }
    @property
    def _json_struct_without_sr(self):
        return {'x': self.x,
                'y': self.y}
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        if isinstance(struct, (list, tuple)):
            x, y = coordinate(struct)
        elif isinstance(struct, dict) and 'x' in struct and 'y' in struct:
            x, y = coordinate([struct['x'], struct['y']])
        else:
            raise ValueError("Point needs an x and a y: %r" % (struct,))
        return cls(x, y, struct.get('spatialReference', spatialReference)
                         if isinstance(struct, dict) else spatialReference)

@Geometry._register_type
class Multipoint(Geometry):
    """A multipoint contains an array of points and a spatialReference. Each
       point is represented as a 2-element array. The 0-index is the
       x-coordinate and the 1-index is the y-coordinate."""
    __geometry_type__ = "esriGeometryMultipoint"
    def __init__(self, points, spatialReference=None):
        self.spatialReference = _spatialreference(spatialReference)
        self.points = pointlist(points)
    def __repr__(self):
        return "MULTIPOINT(%s)" % ",".join("%0.5f %0.5f" % pt
                                           for pt in self.points)
    def __len__(self):
        return len(self.points)
    @property
    def __geo_interface__(self):
        return {
            'type': 'MultiPoint',
            'coordinates': [list(pt) for pt in self.points]
        }
    @property
    def _json_struct_without_sr(self):
        return {'points': [list(pt) for pt in self.points]}
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        if not isinstance(struct, dict) or 'points' not in struct:
            raise ValueError("Multipoint needs points: %r" % (struct,))
        return cls(struct['points'],
                   struct.get('spatialReference', spatialReference))

@Geometry._register_type
class Polyline(Geometry):
    """A polyline contains an array of paths and a spatialReference. Each
       path is represented as an array of points. And each point in the path is
       represented as a 2-element array. The 0-index is the x-coordinate and
       the 1-index is the y-coordinate."""
    __geometry_type__ = "esriGeometryPolyline"
    def __init__(self, paths, spatialReference=None):
        """
        @param paths: A list of lists of points. Each point is a
                      L{Point<arcfeature.geometry.Point>} or a list/tuple
                      whose first two items are the coordinate pair. There
                      must be at least one path and no path may be empty.

        @param spatialReference: A spatial reference passed in as an instance
                                 of SpatialReference or the WKID of a spatial
                                 reference.
        """
        self.spatialReference = _spatialreference(spatialReference)
        self.paths = listofpointlist(paths)
    def __repr__(self):
        return "MULTILINESTRING(%s)" % ",".join(
                                        "(%s)" % ",".join("%0.5f %0.5f" % pt
                                                          for pt in path)
                                        for path in self.paths)
    def __len__(self):
        return len(self.paths)
    @property
    def _json_paths(self):
        return [[list(pt) for pt in path] for path in self.paths]
    @property
    def __geo_interface__(self):
        return {
            'type': 'MultiLineString',
            'coordinates': self._json_paths
        }
    @property
    def _json_struct_without_sr(self):
        return {'paths': self._json_paths}
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        if not isinstance(struct, dict) or 'paths' not in struct:
            raise ValueError("Polyline needs paths: %r" % (struct,))
        return cls(struct['paths'],
                   struct.get('spatialReference', spatialReference))

@Geometry._register_type
class Polygon(Geometry):
    """A polygon contains an array of rings and a spatialReference. Each ring
       is represented as an array of points. The first point of each ring is
       always the same as the last point. And each point in the ring is
       represented as a 2-element array. The 0-index is the x-coordinate and
       the 1-index is the y-coordinate."""
    __geometry_type__ = "esriGeometryPolygon"
    def __init__(self, rings, spatialReference=None):
        """
        @param rings: A list of lists of points, as for
                      L{Polyline<arcfeature.geometry.Polyline>}. Rings are
                      kept as the server sends them; closing and winding
                      order are not checked.

        @param spatialReference: A spatial reference passed in as an instance
                                 of SpatialReference or the WKID of a spatial
                                 reference.
        """
        self.spatialReference = _spatialreference(spatialReference)
        self.rings = listofpointlist(rings)
    def __repr__(self):
        return "POLYGON(%s)" % ",".join(
                                        "(%s)" % ",".join("%0.5f %0.5f" % pt
                                                          for pt in ring)
                                        for ring in self.rings)
    def __len__(self):
        return len(self.rings)
    @property
    def _json_rings(self):
        return [[list(pt) for pt in ring] for ring in self.rings]
    @property
    def __geo_interface__(self):
        return {
            'type': 'Polygon',
            'coordinates': self._json_rings
        }
    @property
    def _json_struct_without_sr(self):
        return {'rings': self._json_rings}
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        if not isinstance(struct, dict) or 'rings' not in struct:
            raise ValueError("Polygon needs rings: %r" % (struct,))
        return cls(struct['rings'],
                   struct.get('spatialReference', spatialReference))

@Geometry._register_type
class Envelope(Geometry):
    """An envelope contains the corner points of an extent and is represented
       by xmin, ymin, xmax, and ymax, along with a spatialReference."""
    __geometry_type__ = "esriGeometryEnvelope"
    def __init__(self, xmin, ymin, xmax, ymax, spatialReference=None):
        self.spatialReference = _spatialreference(spatialReference)
        (self.xmin, self.ymin) = coordinate([xmin, ymin])
        (self.xmax, self.ymax) = coordinate([xmax, ymax])
    def __repr__(self):
        return "ENVELOPE(%0.5f %0.5f,%0.5f %0.5f)" % (self.xmin, self.ymin,
                                                      self.xmax, self.ymax)
    def __len__(self):
        return 4
    def __contains__(self, pt):
        x, y = coordinate(pt)
        return (self.xmax >= x >= self.xmin) and (self.ymax >= y >= self.ymin)
    @property
    def __geo_interface__(self):
        return {
            'type': 'Polygon',
            'coordinates': [[[self.xmin, self.ymin], [self.xmax, self.ymin],
                             [self.xmax, self.ymax], [self.xmin, self.ymax],
                             [self.xmin, self.ymin]]]
        }
    @property
    def _json_struct_without_sr(self):
        return {'xmin': self.xmin,
                'ymin': self.ymin,
                'xmax': self.xmax,
                'ymax': self.ymax}
    @property
    def bbox(self):
        "Return the envelope as a bounding box string compatible with params"
        return ",".join(str(attr) for attr in
                            (self.xmin, self.ymin, self.xmax, self.ymax))
    @classmethod
    def fromJson(cls, struct, spatialReference=None):
        try:
            return cls(struct['xmin'], struct['ymin'],
                       struct['xmax'], struct['ymax'],
                       struct.get('spatialReference', spatialReference))
        except (KeyError, TypeError):
            raise ValueError("Envelope needs xmin, ymin, xmax and ymax: %r"
                             % (struct,))

def fromJson(struct, geometryType=None, spatialReference=None):
    """Convert a JSON struct to a Geometry. If geometryType (an Esri type
       name or a geometry class) is given the struct must be a valid geometry
       of that type, otherwise the type is guessed from the struct's keys.
       A missing or empty struct is a L{NullGeometry}."""
    if isinstance(struct, str):
        struct = json.loads(struct)
    if not struct:
        return NullGeometry()
    if isinstance(struct, dict) and struct.get('x', 0) in (None, 'NaN'):
        # Empty points come back as {"x": null} or {"x": "NaN"}
        return NullGeometry()
    if isinstance(geometryType, str):
        if geometryType not in geometry_types:
            raise ValueError("Unknown geometry type %r" % geometryType)
        geometryType = geometry_types[geometryType]
    if geometryType is None:
        indicative_attributes = {
            'x': Point,
            'paths': Polyline,
            'rings': Polygon,
            'points': Multipoint,
            'xmin': Envelope
        }
        if isinstance(struct, dict):
            for key, cls in indicative_attributes.items():
                if key in struct:
                    geometryType = cls
                    break
        if geometryType is None:
            raise ValueError("Unconvertible to geometry")
    return geometryType.fromJson(struct, spatialReference)
