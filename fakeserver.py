# coding: utf-8
"""A stand-in for the HTTP opener used by arcfeature.server.RestURL. It
   answers requests from canned FeatureServer JSON, keyed by URL path, and
   records every request so tests can check what was sent and when."""

import io
import json
import urllib.error
import urllib.parse

HOST = "https://services9.arcgis.com"
SERVICE_PATH = "/RHVPKKiFTONKtxq3/arcgis/rest/services/Active_Hurricanes_v1/FeatureServer/"
SERVICE_URL = HOST + SERVICE_PATH.rstrip("/")

SERVICE_JSON = {
    "currentVersion": 11.1,
    "serviceDescription": "Active tropical cyclones",
    "maxRecordCount": 2000,
    "spatialReference": {"wkid": 4326, "latestWkid": 4326},
    "layers": [
        {"id": 0, "name": "Forecast Position",
         "geometryType": "esriGeometryPoint", "type": "Feature Layer"},
        {"id": 1, "name": "Observed Position",
         "geometryType": "esriGeometryPoint", "type": "Feature Layer"},
        {"id": 2, "name": "Forecast Track",
         "geometryType": "esriGeometryPolyline", "type": "Feature Layer"},
        {"id": 4, "name": "Forecast Error Cone",
         "geometryType": "esriGeometryPolygon", "type": "Feature Layer"},
    ],
    "tables": [
        {"id": 5, "name": "Storm Names"},
    ],
}

OBSERVED_FIELDS = [
    {"name": "OBJECTID", "type": "esriFieldTypeOID", "alias": "OBJECTID"},
    {"name": "STORMNAME", "type": "esriFieldTypeString", "alias": "Storm Name",
     "length": 50},
    {"name": "INTENSITY", "type": "esriFieldTypeInteger", "alias": "Intensity"},
    {"name": "PRESSURE", "type": "esriFieldTypeDouble", "alias": "Pressure"},
    {"name": "YEAR", "type": "esriFieldTypeSmallInteger", "alias": "Year"},
    {"name": "MONTH", "type": "esriFieldTypeSmallInteger", "alias": "Month"},
    {"name": "DAY", "type": "esriFieldTypeSmallInteger", "alias": "Day"},
    {"name": "HHMM", "type": "esriFieldTypeString", "alias": "Time"},
    {"name": "DTG", "type": "esriFieldTypeDate", "alias": "Date Time Group"},
]

OBSERVED_JSON = {
    "id": 1,
    "name": "Observed Position",
    "type": "Feature Layer",
    "geometryType": "esriGeometryPoint",
    "displayField": "STORMNAME",
    "objectIdField": "OBJECTID",
    "maxRecordCount": 2000,
    "advancedQueryCapabilities": {"supportsPagination": True},
    "extent": {"xmin": 40.5, "ymin": -25.0, "xmax": 70.0, "ymax": -10.0,
               "spatialReference": {"wkid": 4326}},
    "fields": OBSERVED_FIELDS,
}

def _observed(oid, name, intensity, pressure, day, hhmm, dtg, x, y):
    return {"attributes": {"OBJECTID": oid, "STORMNAME": name,
                           "INTENSITY": intensity, "PRESSURE": pressure,
                           "YEAR": 2024, "MONTH": 2, "DAY": day,
                           "HHMM": hhmm, "DTG": dtg},
            "geometry": {"x": x, "y": y}}

OBSERVED = [
    _observed(1, "Djoungou", 35, 1001.5, 15, "0600", 1707976800000, 62.4, -17.6),
    _observed(2, "Djoungou", 55, 990.0, 15, "1200", 1707998400000, 61.8, -18.2),
    _observed(3, "Eleanor", 45, 995.0, 21, "0000", 1708473600000, 57.1, -15.9),
    _observed(4, "Faraji", 40, None, 5, "1800", 1707156000000, 48.0, -12.3),
]

TRACK_JSON = {
    "id": 2,
    "name": "Forecast Track",
    "geometryType": "esriGeometryPolyline",
    "objectIdField": "OBJECTID",
    "fields": [
        {"name": "OBJECTID", "type": "esriFieldTypeOID"},
        {"name": "STORMNAME", "type": "esriFieldTypeString"},
    ],
}

TRACKS = [
    {"attributes": {"OBJECTID": 1, "STORMNAME": "Djoungou"},
     "geometry": {"paths": [[[62.4, -17.6], [61.8, -18.2], [60.0, -20.1]]]}},
]

CONE_JSON = {
    "id": 4,
    "name": "Forecast Error Cone",
    "geometryType": "esriGeometryPolygon",
    "objectIdField": "OBJECTID",
    "fields": [
        {"name": "OBJECTID", "type": "esriFieldTypeOID"},
        {"name": "STORMNAME", "type": "esriFieldTypeString"},
    ],
}

CONES = [
    {"attributes": {"OBJECTID": 1, "STORMNAME": "Djoungou"},
     "geometry": {"rings": [[[62.0, -17.0], [63.0, -18.0], [61.0, -19.0],
                             [62.0, -17.0]]]}},
]

NAMES_JSON = {
    "id": 5,
    "name": "Storm Names",
    "type": "Table",
    "objectIdField": "OBJECTID",
    "fields": [
        {"name": "OBJECTID", "type": "esriFieldTypeOID"},
        {"name": "NAME", "type": "esriFieldTypeString"},
    ],
}

NAMES = [
    {"attributes": {"OBJECTID": 1, "NAME": "Djoungou"}},
    {"attributes": {"OBJECTID": 2, "NAME": "Eleanor"}},
]

def error(code, message, details=()):
    return {"error": {"code": code, "message": message,
                      "details": list(details)}}

class QueryHandler(object):
    """Answers layer queries roughly the way a feature service does. Only
       the where clauses "1=1", "1=0" and "FIELD = 'value'" are
       understood; anything else is rejected."""
    def __init__(self, layer_json, records, limit=2000, fail_at_offset=None):
        self.layer_json = layer_json
        self.records = records
        self.limit = limit
        self.fail_at_offset = fail_at_offset
    def _matches(self, where):
        where = where.strip()
        if where == "1=1":
            return list(self.records)
        if where == "1=0":
            return []
        field, sep, value = where.partition(" = ")
        if sep and value.startswith("'") and value.endswith("'"):
            return [record for record in self.records
                    if record["attributes"].get(field) == value[1:-1]]
        return None
    def __call__(self, params):
        names = [field["name"] for field in self.layer_json["fields"]]
        matches = self._matches(params.get("where", "1=1"))
        if matches is None:
            return error(400, "Unable to complete operation.",
                         ["'where' parameter is invalid"])
        if params.get("returnCountOnly") == "true":
            return {"count": len(matches)}
        out_fields = params.get("outFields", "*")
        if out_fields == "*":
            keep = names
        else:
            keep = [name.strip() for name in out_fields.split(",") if name]
            lowered = [name.lower() for name in names]
            if any(name.lower() not in lowered for name in keep):
                return error(400, "Unable to complete operation.",
                             ["Invalid field in outFields"])
            keep = [names[lowered.index(name.lower())] for name in keep]
        offset = int(params.get("resultOffset", 0))
        if self.fail_at_offset is not None and offset >= self.fail_at_offset:
            return error(500, "Internal server error.")
        count = min(int(params.get("resultRecordCount", self.limit)),
                    self.limit)
        page = matches[offset:offset + count]
        features = []
        for record in page:
            feature = {"attributes": dict((name, record["attributes"].get(name))
                                          for name in keep)}
            if params.get("returnGeometry") != "false" and "geometry" in record:
                feature["geometry"] = record["geometry"]
            features.append(feature)
        response = {
            "objectIdFieldName": "OBJECTID",
            "fields": [field for field in self.layer_json["fields"]
                       if field["name"] in keep],
            "features": features,
        }
        if "geometryType" in self.layer_json:
            response["geometryType"] = self.layer_json["geometryType"]
            response["spatialReference"] = {"wkid": 4326, "latestWkid": 4326}
        if offset + len(page) < len(matches):
            response["exceededTransferLimit"] = True
        return response

def default_routes():
    return {
        SERVICE_PATH: SERVICE_JSON,
        SERVICE_PATH + "1/": OBSERVED_JSON,
        SERVICE_PATH + "1/query": QueryHandler(OBSERVED_JSON, OBSERVED),
        SERVICE_PATH + "2/": TRACK_JSON,
        SERVICE_PATH + "2/query": QueryHandler(TRACK_JSON, TRACKS),
        SERVICE_PATH + "4/": CONE_JSON,
        SERVICE_PATH + "4/query": QueryHandler(CONE_JSON, CONES),
        SERVICE_PATH + "5/": NAMES_JSON,
        SERVICE_PATH + "5/query": QueryHandler(NAMES_JSON, NAMES),
    }

class FakeRequest(object):
    def __init__(self, request, timeout):
        self.method = request.get_method()
        parts = urllib.parse.urlsplit(request.full_url)
        self.path = parts.path
        query = request.data.decode("utf-8") if request.data else parts.query
        self.params = dict(urllib.parse.parse_qsl(query,
                                                  keep_blank_values=True))
        self.headers = dict(request.header_items())
        self.timeout = timeout
    def __repr__(self):
        return "<FakeRequest %s %s %r>" % (self.method, self.path, self.params)

class FakeOpener(object):
    """Routes map a URL path to a JSON-able response, raw bytes, an
       exception to raise, or a callable taking the request parameters and
       returning one of those."""
    def __init__(self, routes=None):
        self.routes = default_routes() if routes is None else routes
        self.requests = []
    def requests_to(self, path):
        return [request for request in self.requests if request.path == path]
    def open(self, request, timeout=None):
        fake = FakeRequest(request, timeout)
        self.requests.append(fake)
        route = self.routes.get(fake.path)
        if route is None:
            raise urllib.error.HTTPError(request.full_url, 404, "Not Found",
                                         {}, io.BytesIO(b"<html>404</html>"))
        if callable(route) and not isinstance(route, type):
            route = route(fake.params)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, bytes):
            return io.BytesIO(route)
        return io.BytesIO(json.dumps(route).encode("utf-8"))
