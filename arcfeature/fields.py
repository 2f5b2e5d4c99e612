# coding: utf-8
"""Field descriptions of a feature layer. The REST API names every column
   type with an esriFieldType* string; each of those is registered here
   against a field type class that knows how to turn the JSON value of an
   attribute into a Python value. Date fields arrive as milliseconds since
   the epoch and are converted to UTC datetimes; null is always None."""

import datetime
import inspect

from . import utils
from .errors import InvalidFieldName

__all__ = ['FieldType', 'Field', 'FieldCatalog']

class FieldType(object):
    """Base class for the types a field in a layer can have"""
    #: Short type name, e.g. "Integer"
    name = None
    #: The esriFieldType* names that map to this type
    __esri_types__ = ()
    _type_mapping = {}

    def __init__(self):
        raise NotImplementedError("Field types are not instantiated")
    @classmethod
    def _register_type(cls, newcls):
        for esri_type in newcls.__esri_types__:
            cls._type_mapping[esri_type] = newcls
        return newcls
    @classmethod
    def fromName(cls, esri_type):
        "Get the field type class for an esriFieldType* name"
        try:
            return cls._type_mapping[esri_type]
        except (KeyError, TypeError):
            raise ValueError("Unknown field type %r" % (esri_type,))
    @classmethod
    def convert(cls, value):
        "Convert a JSON attribute value of this type to a Python value"
        return value

@FieldType._register_type
class IntegerField(FieldType):
    name = "Integer"
    __esri_types__ = ('esriFieldTypeSmallInteger', 'esriFieldTypeInteger',
                      'esriFieldTypeBigInteger')
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        converted = int(value)
        if isinstance(value, float) and converted != value:
            raise ValueError("%r is not a whole number" % (value,))
        return converted

@FieldType._register_type
class ObjectIDField(IntegerField):
    name = "ObjectID"
    __esri_types__ = ('esriFieldTypeOID',)

@FieldType._register_type
class DoubleField(FieldType):
    name = "Double"
    __esri_types__ = ('esriFieldTypeSingle', 'esriFieldTypeDouble')
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        return float(value)

@FieldType._register_type
class StringField(FieldType):
    name = "String"
    __esri_types__ = ('esriFieldTypeString',)
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        return str(value)

@FieldType._register_type
class GUIDField(StringField):
    name = "GUID"
    __esri_types__ = ('esriFieldTypeGUID',)

@FieldType._register_type
class GlobalIDField(StringField):
    name = "GlobalID"
    __esri_types__ = ('esriFieldTypeGlobalID',)

@FieldType._register_type
class XMLField(StringField):
    name = "XML"
    __esri_types__ = ('esriFieldTypeXML',)

@FieldType._register_type
class DateField(FieldType):
    name = "Date"
    __esri_types__ = ('esriFieldTypeDate',)
    @classmethod
    def convert(cls, value):
        return utils.timetopythonvalue(value)

@FieldType._register_type
class DateOnlyField(FieldType):
    name = "DateOnly"
    __esri_types__ = ('esriFieldTypeDateOnly',)
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        return datetime.date.fromisoformat(value)

@FieldType._register_type
class TimeOnlyField(FieldType):
    name = "TimeOnly"
    __esri_types__ = ('esriFieldTypeTimeOnly',)
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        return datetime.time.fromisoformat(value)

@FieldType._register_type
class TimestampOffsetField(FieldType):
    name = "TimestampOffset"
    __esri_types__ = ('esriFieldTypeTimestampOffset',)
    @classmethod
    def convert(cls, value):
        if value is None:
            return None
        return datetime.datetime.fromisoformat(value)

# The remaining types are passed through untouched
@FieldType._register_type
class GeometryField(FieldType):
    name = "Geometry"
    __esri_types__ = ('esriFieldTypeGeometry',)

@FieldType._register_type
class BlobField(FieldType):
    name = "Blob"
    __esri_types__ = ('esriFieldTypeBlob',)

@FieldType._register_type
class RasterField(FieldType):
    name = "Raster"
    __esri_types__ = ('esriFieldTypeRaster',)

class Field(object):
    """A named, typed attribute column of a layer."""
    def __init__(self, name, type, alias=None, length=None, nullable=True):
        """
        @param name: The field's name
        @param type: A L{FieldType} subclass or an esriFieldType* name
        @param alias: Display name, defaults to the name
        @param length: Maximum length of string fields
        @param nullable: Whether the field accepts nulls
        """
        if not name or not isinstance(name, str):
            raise ValueError("Field name must be a non-empty string: %r"
                             % (name,))
        if not (inspect.isclass(type) and issubclass(type, FieldType)):
            type = FieldType.fromName(type)
        self.name = name
        self.type = type
        self.alias = alias or name
        self.length = length
        self.nullable = nullable
    def __repr__(self):
        return "<Field %s (%s)>" % (self.name, self.type.name)
    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return (self.name, self.type) == (other.name, other.type)
    def __hash__(self):
        return hash((self.name, self.type))
    def convert(self, value):
        """Convert a JSON value of this field to Python, raising ValueError if
           it does not fit the field's type"""
        try:
            return self.type.convert(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError("Bad value %r for %s field %r: %s" %
                             (value, self.type.name, self.name, e))
    @classmethod
    def fromJson(cls, struct):
        if not isinstance(struct, dict) or 'name' not in struct \
                                         or 'type' not in struct:
            raise ValueError("Field needs a name and a type: %r" % (struct,))
        return cls(struct['name'], struct['type'], struct.get('alias'),
                   struct.get('length'), struct.get('nullable', True))

class FieldCatalog(object):
    """The ordered fields of a layer, unique by name. Names are looked up
       without regard to case, the same way the REST API matches them.

            >>> catalog = layer.fields
            >>> catalog.names
            ['OBJECTID', 'STORMNAME', 'INTENSITY']
            >>> catalog['stormname']
            <Field STORMNAME (String)>
            >>> 'Intensity' in catalog
            True
       """
    def __init__(self, fields=()):
        self._fields = []
        self._by_name = {}
        for field in fields:
            if not isinstance(field, Field):
                field = Field.fromJson(field)
            key = field.name.lower()
            if key in self._by_name:
                raise ValueError("Duplicate field name %r" % field.name)
            self._by_name[key] = field
            self._fields.append(field)
    def __repr__(self):
        return "<FieldCatalog %r>" % self.names
    def __iter__(self):
        return iter(self._fields)
    def __len__(self):
        return len(self._fields)
    def __contains__(self, name):
        if isinstance(name, Field):
            name = name.name
        return isinstance(name, str) and name.lower() in self._by_name
    def __getitem__(self, key):
        if isinstance(key, (int, slice)):
            return self._fields[key]
        try:
            return self._by_name[key.lower()]
        except (KeyError, AttributeError):
            raise KeyError(key)
    def __eq__(self, other):
        if not isinstance(other, FieldCatalog):
            return NotImplemented
        return self._fields == other._fields
    __hash__ = None
    def get(self, name, default=None):
        try:
            return self[name]
        except KeyError:
            return default
    @property
    def names(self):
        "The field names, in layer order"
        return [field.name for field in self._fields]
    def resolve(self, names, layer=None):
        """Return the fields for the given names, in the given order and
           spelled the way the layer spells them. Raises
           L{InvalidFieldName} listing every name not in the catalog."""
        if isinstance(names, str):
            names = [name.strip() for name in names.split(",")]
        names = list(names)
        unknown = [name for name in names if name not in self]
        if unknown:
            raise InvalidFieldName(unknown, layer)
        resolved, seen = [], set()
        for name in names:
            field = self[name]
            if field.name not in seen:
                seen.add(field.name)
                resolved.append(field)
        return FieldCatalog(resolved)
    @classmethod
    def fromJson(cls, struct):
        if struct is None:
            return cls()
        if not isinstance(struct, list):
            raise ValueError("Expected a list of fields: %r" % (struct,))
        return cls(Field.fromJson(field) for field in struct)
