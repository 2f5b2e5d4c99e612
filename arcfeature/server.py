# coding: utf-8
"""The ArcGIS Server REST API, short for Representational State Transfer,
   provides a simple, open Web interface to services hosted by ArcGIS Server.
   All resources and operations exposed by the REST API are accessible through
   a hierarchy of endpoints or Uniform Resource Locators (URLs) for each GIS
   service published with ArcGIS Server. This module covers the read side of
   feature services: describing a service and its layers, and querying a
   layer's features."""

import http.client
import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request

from . import fields
from . import geometry
from . import utils
from .errors import *

__all__ = ['RestURL', 'FeatureService', 'FeatureLayer', 'LayerInfo',
           'Feature', 'FeatureSet', 'FeatureServiceError', 'InvalidEndpoint',
           'ServiceUnavailable', 'ServerError', 'MalformedMetadata',
           'LayerNotFound', 'InvalidFieldName', 'QueryRejected']

LOGGER = logging.getLogger(__name__)

#: User agent to report when making requests
USER_AGENT = "Mozilla/4.0 (arcfeature)"

#: Seconds to wait on a response; None leaves it to the socket default
DEFAULT_TIMEOUT = None

#: Requests with a longer query string are sent as a form POST
MAX_GET_LENGTH = 2000

#: Page size when paging through a layer that does not state maxRecordCount
DEFAULT_PAGE_SIZE = 1000

# Note that every class below that talks to the server derives from this
# RestURL class. Every object has an underlying URL resource on the REST
# server: a service's or layer's description, which is near-static and
# fetched once, or the result of an operation such as a query, which is
# fetched as soon as it is created. RestURL makes sure the format is always
# set to json, carries the token and referer along to every resource
# derived from it, parses the json and turns failures of any kind into the
# exceptions in arcfeature.errors.

class RestURL(object):
    """Represents a top-level, base REST-style URL."""
    __cache_request__ = False  # Fetch every time or just once?
    __json_struct__ = Ellipsis # Cache for the parsed response
    __token__ = None           # For token-based auth
    __lazy_fetch__ = True      # Fetch when constructed, or later on?
    __post__ = False           # Move query string to POST
    __error_type__ = ServerError # Raised for error responses
    _parent = None
    _referer = None

    _opener = urllib.request.build_opener()

    def __init__(self, url, token=None, referer=None,
                 timeout=DEFAULT_TIMEOUT):
        # Expects a urlsplitted list as the url, but accepts a
        # string because that is easier/makes more sense everywhere.
        if isinstance(url, str):
            try:
                url = urllib.parse.urlsplit(url.strip())
            except ValueError as e:
                raise InvalidEndpoint("Not a URL: %r (%s)" % (url, e))
        elif not isinstance(url, (tuple, list)):
            raise InvalidEndpoint("Not a URL: %r" % (url,))
        urllist = list(url)
        if urllist[0].lower() not in ('http', 'https') or not urllist[1]:
            raise InvalidEndpoint("Not an http(s) URL: %r" %
                                  urllib.parse.urlunsplit(urllist))
        # Pull out query, whatever it may be. A token in the URL is kept
        # unless one is passed in explicitly.
        query_dict = {}
        for k, v in urllib.parse.parse_qsl(urllist[3],
                                           keep_blank_values=True):
            if k.lower() == 'token':
                if token is None:
                    token = v
            else:
                query_dict[k] = v
        # Set the f= flag to json (so we can interface with it)
        query_dict['f'] = 'json'
        if token is not None:
            query_dict['token'] = token
        urllist[3] = urllib.parse.urlencode(query_dict)
        urllist[4] = ''
        self._url = urllist
        self.__token__ = token
        self._referer = referer
        self._timeout = timeout
        self._lock = threading.RLock()
        if len(urllist[3]) > MAX_GET_LENGTH:
            self.__post__ = True
        # Nonlazy: force a fetch
        if self.__lazy_fetch__ is False:
            self._json_struct
    def __repr__(self):
        url = utils.maskedquery(self.url)
        if len(url) > 100:
            url = url[:97] + "..."
        return "<%s(%r)>" % (self.__class__.__name__, url)
    def _get_subfolder(self, foldername, returntype, params=None,
                       timeout=None):
        """Return an object of the requested type with the path relative
           to the current object's URL. Optionally, query parameters
           may be set."""
        newurl = urllib.parse.urljoin(self.url,
                                      urllib.parse.quote(foldername))
        urllist = list(urllib.parse.urlsplit(newurl))
        query_dict = {}
        for key, val in (params or {}).items():
            # Ignore null values
            if val is None:
                continue
            # Lowercase bool string
            elif isinstance(val, bool):
                query_dict[key] = str(val).lower()
            # Special case: convert an envelope to .bbox in the bb
            # parameter
            elif isinstance(val, geometry.Envelope):
                query_dict[key] = val.bbox
            # Just use the wkid of SpatialReferences that have one
            elif isinstance(val, geometry.SpatialReference):
                query_dict[key] = (str(val.wkid) if val.wkid is not None
                                   else json.dumps(val._json_struct))
            # If it's a list of names or fields, make it a comma-separated
            # string
            elif isinstance(val, (list, tuple, set, fields.FieldCatalog)):
                query_dict[key] = ",".join(v.name
                                           if isinstance(v, fields.Field)
                                           else str(v) for v in val)
            # If it's a dictionary, dump as JSON
            elif isinstance(val, dict):
                query_dict[key] = json.dumps(val)
            else:
                query_dict[key] = str(val)
        urllist[3] = urllib.parse.urlencode(query_dict)
        # Instantiate new RestURL or subclass
        rt = returntype(urllist, token=self.__token__,
                        referer=self._referer,
                        timeout=self._timeout if timeout is None else timeout)
        # Remind the resource where it came from
        rt.parent = self
        return rt
    @property
    def url(self):
        """The URL as a string of the resource."""
        urlparts = self._url
        if self.__post__:
            urlparts = list(urlparts)
            urlparts[3] = '' # Clear out query string on POST
        return urllib.parse.urlunsplit(urlparts)
    @property
    def query(self):
        return self._url[3]
    @property
    def _contents(self):
        """The raw contents of the URL as fetched. Network and HTTP failures
           are raised as ServiceUnavailable; an HTTP error whose body is a
           REST API error message is returned like a regular response so
           the error is reported from its content."""
        headers = {'User-Agent': USER_AGENT}
        if self._referer:
            headers['Referer'] = self._referer
        data = None
        if self.__post__:
            data = self.query.encode('utf-8')
            headers['Content-Type'] = 'application/x-www-form-urlencoded'
        request = urllib.request.Request(self.url, data, headers)
        logged_url = utils.maskedquery(urllib.parse.urlunsplit(self._url))
        LOGGER.debug("%s %s", "POST" if data else "GET", logged_url)
        kw = {}
        if self._timeout is not None:
            kw['timeout'] = self._timeout
        try:
            with self._opener.open(request, **kw) as handle:
                return handle.read()
        except urllib.error.HTTPError as e:
            try:
                body = e.read()
            except (OSError, http.client.HTTPException):
                body = b''
            if _is_error_message(body):
                return body
            LOGGER.warning("HTTP %s from %s", e.code, logged_url)
            raise ServiceUnavailable("HTTP error %s (%s) <%s>" %
                                     (e.code, e.reason, logged_url)) from e
        except (OSError, http.client.HTTPException) as e:
            reason = getattr(e, 'reason', None) or e
            LOGGER.warning("Request to %s failed: %s", logged_url, reason)
            raise ServiceUnavailable("Request failed (%s) <%s>" %
                                     (reason, logged_url)) from e
    @property
    def _json_struct(self):
        """The json data structure in the URL contents, it will cache this
           if it makes sense so it doesn't fetch and parse over and over.
           Concurrent first access fetches once."""
        if not self.__cache_request__:
            return self._parse(self._contents)
        if self.__json_struct__ is Ellipsis:
            with self._lock:
                if self.__json_struct__ is Ellipsis:
                    self.__json_struct__ = self._parse(self._contents)
        return self.__json_struct__
    def _parse(self, data):
        logged_url = utils.maskedquery(urllib.parse.urlunsplit(self._url))
        try:
            struct = json.loads(data.decode('utf-8').strip() or '{}')
        except ValueError as e:
            LOGGER.warning("Unparseable response from %s", logged_url)
            raise MalformedMetadata("Response is not JSON (%s) <%s>" %
                                    (e, logged_url)) from e
        if not isinstance(struct, dict):
            raise MalformedMetadata("Expected a JSON object, got %s <%s>" %
                                    (type(struct).__name__, logged_url))
        if 'error' in struct:
            error = struct['error']
            if not isinstance(error, dict):
                error = {'message': str(error)}
            details = [str(detail) for detail in error.get('details') or []]
            detailstring = ", ".join(details)
            if detailstring:
                detailstring = " -- " + detailstring
            LOGGER.warning("Error response %r from %s", error.get('code'),
                           logged_url)
            code = error.get('code')
            raise self._error_type(code)("ERROR %r: %s%s <%s>" %
                                         (code,
                                          error.get('message') or 'Unspecified',
                                          detailstring,
                                          logged_url),
                                         code, details)
        return struct
    def _error_type(self, code):
        "The exception class for an error response with the given code"
        return self.__error_type__
    @property
    def parent(self):
        "Get this object's parent"
        if self._parent is not None:
            return self._parent
        raise AttributeError("%r has no parent attribute" % type(self))
    @parent.setter
    def parent(self, val):
        self._parent = val

def _is_error_message(body):
    try:
        struct = json.loads(body.decode('utf-8'))
    except ValueError:
        return False
    return isinstance(struct, dict) and 'error' in struct

def _geometrytype(name):
    "Look up the geometry class for an Esri geometry type name"
    if name is None:
        return None
    try:
        return geometry.geometry_types[name]
    except (KeyError, TypeError):
        raise MalformedMetadata("Unknown geometry type %r" % (name,))

class Result(RestURL):
    """Abstract class representing the result of an operation performed on a
       REST service"""
    __cache_request__ = True # Only request the URL once
    __lazy_fetch__ = False   # Force-fetch immediately

class QueryResult(Result):
    """The response to one query request on a layer. Error responses are
       the server refusing the query, unless they are token or server
       faults."""
    __error_type__ = QueryRejected

    def _error_type(self, code):
        # 498/499 are invalid and missing tokens, 5xx server faults
        if isinstance(code, int) and (code in (498, 499) or code >= 500):
            return ServerError
        return self.__error_type__

class LayerInfo(object):
    """The short description of a layer or table a feature service lists:
       its id, name and geometry type. Tables have no geometry type."""
    def __init__(self, id, name, geometryType=None, type=None):
        self.id = id
        self.name = name
        self.geometryType = geometryType
        self.type = type
    def __repr__(self):
        return "<LayerInfo %i %r (%s)>" % (self.id, self.name,
                                           self.geometryType.__name__
                                           if self.geometryType
                                           else 'Table')
    def __eq__(self, other):
        if not isinstance(other, LayerInfo):
            return NotImplemented
        return ((self.id, self.name, self.geometryType) ==
                (other.id, other.name, other.geometryType))
    __hash__ = None
    @classmethod
    def fromJson(cls, struct, table=False):
        if not isinstance(struct, dict):
            raise MalformedMetadata("Expected a layer description, got %r"
                                    % (struct,))
        layer_id, name = struct.get('id'), struct.get('name')
        if (not isinstance(layer_id, int) or isinstance(layer_id, bool)
                or not isinstance(name, str)):
            raise MalformedMetadata("Layer description needs an integer id "
                                    "and a name: %r" % (struct,))
        geometrytype = None
        if not table:
            geometrytype = _geometrytype(struct.get('geometryType'))
        return cls(layer_id, name, geometrytype,
                   struct.get('type', 'Table' if table else None))

class Service(RestURL):
    """Represents an ArcGIS REST service. This is an abstract base -- services
       derive from this."""
    __cache_request__ = True
    __service_type__ = None

    def __init__(self, url, token=None, referer=None,
                 timeout=DEFAULT_TIMEOUT):
        if isinstance(url, str):
            url = url.strip()
            try:
                url = urllib.parse.urlsplit(url)
            except ValueError as e:
                raise InvalidEndpoint("Not a URL: %r (%s)" % (url, e))
        if isinstance(url, (tuple, list)):
            url = list(url)
            if not url[2].endswith('/'):
                url[2] += "/"
        super(Service, self).__init__(url, token, referer, timeout)
    @property
    def serviceDescription(self):
        """Get a short description of the service. Will return None if there is
           no description for this service or service type."""
        return self._json_struct.get('serviceDescription', None) or None
    @property
    def currentVersion(self):
        return self._json_struct.get('currentVersion', None)
    def __repr__(self):
        return "<%s (%r)>" % (self.__service_type__,
                              utils.maskedquery(self.url))

class FeatureService(Service):
    """A feature service allows clients to query features. Features
       include geometry and attributes and are organized into layers.
       Creating one does not talk to the server; the service description
       is fetched the first time it is needed and kept for the lifetime of
       the object.

            >>> service = arcfeature.FeatureService(
            ...     "https://services.arcgis.com/.../FeatureServer")
            >>> service.layers
            [<LayerInfo 0 'ObservedPosition' (Point)>, ...]
            >>> layer = service.layer(0)
       """
    __service_type__ = "FeatureServer"

    def __init__(self, url, token=None, referer=None,
                 timeout=DEFAULT_TIMEOUT):
        super(FeatureService, self).__init__(url, token, referer, timeout)
        self._layer_handles = {}
    def _infos(self, key, table):
        entries = self._json_struct.get(key, [])
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise MalformedMetadata("%r of %r is not a list" % (key, self))
        return [LayerInfo.fromJson(entry, table) for entry in entries]
    @property
    def layers(self):
        """Return a list of the descriptions of this service's layers"""
        return self._infos('layers', False)
    @property
    def layernames(self):
        """Return a list of the names of this service's layers"""
        return [layer.name for layer in self.layers]
    @property
    def tables(self):
        """Return a list of the descriptions of this service's tables"""
        return self._infos('tables', True)
    @property
    def tablenames(self):
        """Return a list of the names of this service's tables"""
        return [table.name for table in self.tables]
    @property
    def maxRecordCount(self):
        return self._json_struct.get('maxRecordCount', None)
    @property
    def spatialReference(self):
        return geometry.SpatialReference.fromJson(
                    self._json_struct.get('spatialReference'))
    def layer(self, id):
        """Get a layer or table of this service by its id. Raises
           LayerNotFound if there is no such id."""
        # Only ints and numeric strings; floats would be truncated
        layer_id = None
        if isinstance(id, int) and not isinstance(id, bool):
            layer_id = id
        elif isinstance(id, str):
            try:
                layer_id = int(id)
            except ValueError:
                pass
        if layer_id is None:
            raise LayerNotFound("No layer %r in %r" % (id, self))
        with self._lock:
            if layer_id not in self._layer_handles:
                for info in self.layers + self.tables:
                    if info.id == layer_id:
                        layer = self._get_subfolder("%i/" % info.id,
                                                    FeatureLayer)
                        layer._info = info
                        self._layer_handles[layer_id] = layer
                        break
                else:
                    raise LayerNotFound("No layer %r in %r" % (id, self))
            return self._layer_handles[layer_id]
    def layerByName(self, name):
        """Get a layer or table of this service by its name"""
        for info in self.layers + self.tables:
            if info.name == name:
                return self.layer(info.id)
        raise LayerNotFound("No layer named %r in %r" % (name, self))
    def __getitem__(self, id):
        return self.layer(id)

class Feature(object):
    """One record returned from a query: its attributes, keyed by field
       name, and its geometry."""
    def __init__(self, attributes, geometry):
        self.attributes = attributes
        self.geometry = geometry
    def __repr__(self):
        return "<Feature %r %r>" % (self.geometry, self.attributes)
    def __getitem__(self, attr):
        return self.attributes[attr]
    def __eq__(self, other):
        if not isinstance(other, Feature):
            return NotImplemented
        return ((self.attributes, self.geometry) ==
                (other.attributes, other.geometry))
    __hash__ = None
    @property
    def __geo_interface__(self):
        return {
            'type': 'Feature',
            'geometry': self.geometry.__geo_interface__,
            'properties': dict(self.attributes)
        }

class FeatureSet(object):
    """The features a query returned, in the order the server sent them,
       along with the fields each feature has attributes for. Iterating
       gives the L{Feature}s; L{rows} gives tuples ready for a table."""
    def __init__(self, features, fields, geometryType=None,
                 spatialReference=None, exceededTransferLimit=False):
        self._features = list(features)
        self.fields = fields
        self.geometryType = geometryType
        self.spatialReference = spatialReference
        self.exceededTransferLimit = exceededTransferLimit
    def __repr__(self):
        return "<FeatureSet %i feature%s %r>" % (len(self),
                                                 "" if len(self) == 1
                                                    else "s",
                                                 self.columns)
    def __iter__(self):
        return iter(self._features)
    def __len__(self):
        return len(self._features)
    def __getitem__(self, index):
        return self._features[index]
    @property
    def features(self):
        return list(self._features)
    @property
    def columns(self):
        "Names of the attribute columns, in requested order"
        return self.fields.names
    def rows(self, columns=None):
        """Return one tuple per feature holding the attribute values of the
           given columns (all columns by default). Values can be read by
           index or, where the column name allows, as attributes:

                >>> for row in result.rows(['STORMNAME', 'INTENSITY']):
                ...     print(row.STORMNAME, row.INTENSITY)
           """
        if columns is None:
            columns = self.columns
        else:
            columns = self.fields.resolve(columns).names
        row_type = utils.rowtuple(columns)
        return [row_type(feature.attributes[column] for column in columns)
                for feature in self._features]
    @property
    def __geo_interface__(self):
        return {
            'type': 'FeatureCollection',
            'features': [feature.__geo_interface__
                         for feature in self._features]
        }

class FeatureLayer(RestURL):
    """The layer resource represents a single feature layer or non spatial
       table in a feature service. Its description, including the list of
       fields, is fetched the first time it is needed and kept."""
    __cache_request__ = True # Only request the URL once
    _info = None

    def __init__(self, url, token=None, referer=None,
                 timeout=DEFAULT_TIMEOUT):
        if isinstance(url, str):
            url = url.strip()
            try:
                url = urllib.parse.urlsplit(url)
            except ValueError as e:
                raise InvalidEndpoint("Not a URL: %r (%s)" % (url, e))
        if isinstance(url, (tuple, list)):
            url = list(url)
            if not url[2].endswith('/'):
                url[2] += "/"
        super(FeatureLayer, self).__init__(url, token, referer, timeout)
        self._fields = None
    def __repr__(self):
        if self._info is not None:
            return "<FeatureLayer %i %r>" % (self._info.id, self._info.name)
        return super(FeatureLayer, self).__repr__()
    @property
    def id(self):
        if self._info is not None:
            return self._info.id
        return self._json_struct.get('id')
    @property
    def name(self):
        if self._info is not None:
            return self._info.name
        return self._json_struct.get('name')
    @property
    def type(self):
        return self._json_struct.get('type')
    @property
    def description(self):
        return self._json_struct.get('description') or None
    @property
    def geometryType(self):
        """The geometry class of this layer's features, None for tables"""
        if self._info is not None and self._info.geometryType is not None:
            return self._info.geometryType
        return _geometrytype(self._json_struct.get('geometryType'))
    @property
    def fields(self):
        """The L{FieldCatalog<arcfeature.fields.FieldCatalog>} of this
           layer"""
        if self._fields is None:
            struct = self._json_struct
            with self._lock:
                if self._fields is None:
                    try:
                        self._fields = fields.FieldCatalog.fromJson(
                                                        struct.get('fields'))
                    except ValueError as e:
                        raise MalformedMetadata("Bad fields in %r: %s" %
                                                (self, e)) from e
        return self._fields
    @property
    def displayField(self):
        return self._json_struct.get('displayField')
    @property
    def objectIdField(self):
        oid = self._json_struct.get('objectIdField')
        if oid:
            return oid
        for field in self.fields:
            if field.type is fields.ObjectIDField:
                return field.name
        return None
    @property
    def maxRecordCount(self):
        return self._json_struct.get('maxRecordCount')
    @property
    def supportsPagination(self):
        return self._json_struct.get('advancedQueryCapabilities',
                                     {}).get('supportsPagination')
    @property
    def extent(self):
        extent = self._json_struct.get('extent')
        try:
            return geometry.fromJson(extent, geometry.Envelope)
        except ValueError:
            return None
    def Query(self, outFields=None, where=None, returnGeometry=True,
              outSR=None, orderByFields=None, paginate=False, pageSize=None,
              timeout=None):
        """The query operation is performed on a layer resource. The result
           of this operation is a L{FeatureSet} holding the values of the
           fields requested and, unless returnGeometry is False, the
           geometry of each feature.

           @param outFields: Field names to return, all fields if None. The
                             names are checked against the layer's fields
                             before the query is sent.
           @param where: Filter expression evaluated by the server, passed
                         along as is. All features if None.
           @param paginate: Keep requesting pages while the server reports
                            that it left features out.
           @param pageSize: Features per page, the layer's maxRecordCount
                            by default.
           @param timeout: Seconds to wait for each response.

           A feature the server sends with a null or empty geometry gets a
           L{NullGeometry<arcfeature.geometry.NullGeometry>}, which is
           falsy, even on a point, polyline or polygon layer."""
        if outFields is not None and not isinstance(outFields, str):
            outFields = list(outFields)
        if outFields is None or outFields in ('*', ['*']):
            requested = self.fields
            out_fields = '*'
        else:
            requested = self.fields.resolve(outFields, self)
            out_fields = requested
        geometrytype = self.geometryType
        params = {'where': where or '1=1',
                  'outFields': out_fields,
                  'returnGeometry': bool(returnGeometry),
                  'outSR': outSR,
                  'orderByFields': orderByFields}
        if paginate:
            if self.supportsPagination is False:
                LOGGER.warning("%r does not support pagination, sending a "
                               "single query", self)
                paginate = False
            else:
                pageSize = pageSize or self.maxRecordCount \
                                    or DEFAULT_PAGE_SIZE
                if not orderByFields and self.objectIdField:
                    # Pages need a stable order to line up
                    params['orderByFields'] = "%s ASC" % self.objectIdField
        features, offset = [], 0
        while True:
            page_params = dict(params)
            if paginate:
                page_params['resultOffset'] = offset
                page_params['resultRecordCount'] = pageSize
            page = self._get_subfolder("./query", QueryResult,
                                       page_params, timeout)._json_struct
            page_features = self._features(page, requested, geometrytype,
                                           returnGeometry)
            features.extend(page_features)
            exceeded = bool(page.get('exceededTransferLimit', False))
            if not (paginate and exceeded and page_features):
                break
            offset += len(page_features)
            LOGGER.debug("Fetched %i features from %r, next page at %i",
                         len(page_features), self, offset)
        if exceeded:
            LOGGER.info("%r returned a truncated result of %i features",
                        self, len(features))
        return FeatureSet(features, requested, geometrytype,
                          geometry.SpatialReference.fromJson(
                                page.get('spatialReference')),
                          exceeded)
    def QueryCount(self, where=None, timeout=None):
        """Return the number of features matching the where clause (all
           features if None)."""
        page = self._get_subfolder("./query", QueryResult,
                                   {'where': where or '1=1',
                                    'returnCountOnly': True},
                                   timeout)._json_struct
        count = page.get('count')
        if not isinstance(count, int) or isinstance(count, bool):
            raise MalformedMetadata("No count in query response from %r"
                                    % self)
        return count
    def _features(self, page, requested, geometrytype, returnGeometry):
        """Decode the features of a query response. Attributes are limited
           to the requested fields and converted to their Python types;
           geometries must be of the layer's geometry type."""
        rows = page.get('features')
        if not isinstance(rows, list):
            raise MalformedMetadata("No features in query response from %r"
                                    % self)
        response_type = page.get('geometryType')
        if (response_type and geometrytype is not None and
                _geometrytype(response_type) is not geometrytype):
            raise MalformedMetadata("%r returned %s geometries, expected %s"
                                    % (self, response_type,
                                       geometrytype.__geometry_type__))
        sr = geometry.SpatialReference.fromJson(page.get('spatialReference'))
        features = []
        for row in rows:
            if not isinstance(row, dict):
                raise MalformedMetadata("Bad feature %r from %r" %
                                        (row, self))
            # The server does not promise to keep the case of field names
            values = dict((str(key).lower(), value) for key, value in
                          (row.get('attributes') or {}).items())
            try:
                attributes = dict((field.name,
                                   field.convert(values.get(
                                                    field.name.lower())))
                                  for field in requested)
                if returnGeometry and geometrytype is not None:
                    geom = geometry.fromJson(row.get('geometry'),
                                             geometrytype, sr)
                else:
                    geom = geometry.NullGeometry()
            except ValueError as e:
                raise MalformedMetadata("Bad feature in response from %r: %s"
                                        % (self, e)) from e
            features.append(Feature(attributes, geom))
        return features
