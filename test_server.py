import datetime
import io
import socket
import unittest
import urllib.error
from collections import Counter
from unittest import mock

import arcfeature
from arcfeature import server

import fakeserver
from fakeserver import SERVICE_PATH, SERVICE_URL

SIX_FIELDS = ['STORMNAME', 'INTENSITY', 'YEAR', 'MONTH', 'DAY', 'HHMM']
QUERY_PATH = SERVICE_PATH + "1/query"

class FakeServerTestCase(unittest.TestCase):
    def setUp(self):
        self.opener = fakeserver.FakeOpener()
        patcher = mock.patch.object(server.RestURL, '_opener', self.opener)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.service = arcfeature.FeatureService(SERVICE_URL)

class ServiceTests(FakeServerTestCase):
    def testOpenDoesNoNetworkIO(self):
        arcfeature.FeatureService(SERVICE_URL, token="abc")
        arcfeature.FeatureService(SERVICE_URL + "/")
        self.assertEqual(self.opener.requests, [])
    def testUrl(self):
        self.assertEqual(self.service.url, SERVICE_URL + '/?f=json')
    def testInvalidEndpoints(self):
        for url in ("not a url", "", "ftp://example.com/FeatureServer",
                    "http://", "//example.com/FeatureServer",
                    "http://[::1/FeatureServer", None, 42):
            with self.assertRaises(arcfeature.InvalidEndpoint):
                arcfeature.FeatureService(url)
        self.assertTrue(issubclass(arcfeature.InvalidEndpoint, ValueError))
        self.assertEqual(self.opener.requests, [])
    def testLayersFetchedOnce(self):
        self.assertEqual([layer.id for layer in self.service.layers],
                         [0, 1, 2, 4])
        self.assertEqual(self.service.layernames,
                         ['Forecast Position', 'Observed Position',
                          'Forecast Track', 'Forecast Error Cone'])
        self.service.tables
        self.service.maxRecordCount
        self.assertEqual(len(self.opener.requests), 1)
        self.assertEqual(self.opener.requests[0].params, {'f': 'json'})
    def testLayerGeometryTypes(self):
        types = dict((layer.id, layer.geometryType)
                     for layer in self.service.layers)
        self.assertEqual(types, {0: arcfeature.Point,
                                 1: arcfeature.Point,
                                 2: arcfeature.Polyline,
                                 4: arcfeature.Polygon})
    def testTables(self):
        tables = self.service.tables
        self.assertEqual([(t.id, t.name) for t in tables],
                         [(5, 'Storm Names')])
        self.assertIsNone(tables[0].geometryType)
        self.assertEqual(self.service.tablenames, ['Storm Names'])
    def testServiceMetadata(self):
        self.assertEqual(self.service.serviceDescription,
                         'Active tropical cyclones')
        self.assertEqual(self.service.maxRecordCount, 2000)
        self.assertEqual(self.service.spatialReference, 4326)
    def testTokenSentWithEveryRequest(self):
        service = arcfeature.FeatureService(SERVICE_URL, token="s3cret")
        service.layer(1).Query(['STORMNAME'])
        self.assertEqual(len(self.opener.requests), 3)
        for request in self.opener.requests:
            self.assertEqual(request.params['token'], 's3cret')
        self.assertNotIn('s3cret', repr(service))
    def testTokenTakenFromUrl(self):
        service = arcfeature.FeatureService(SERVICE_URL + "?token=fromurl")
        service.layers
        self.assertEqual(self.opener.requests[0].params['token'], 'fromurl')
    def testRefererAndTimeout(self):
        service = arcfeature.FeatureService(SERVICE_URL,
                                            referer="https://example.com/",
                                            timeout=7.5)
        service.layer(1).fields
        for request in self.opener.requests:
            self.assertEqual(request.headers.get('Referer'),
                             'https://example.com/')
            self.assertEqual(request.timeout, 7.5)
    def testServiceUnavailable(self):
        failures = [urllib.error.URLError("Name or service not known"),
                    socket.timeout("timed out"),
                    ConnectionResetError("reset")]
        for failure in failures:
            self.opener.routes[SERVICE_PATH] = failure
            with self.assertRaises(arcfeature.ServiceUnavailable):
                arcfeature.FeatureService(SERVICE_URL).layers
    def testHttpError(self):
        service = arcfeature.FeatureService(SERVICE_URL + "/Missing")
        with self.assertRaises(arcfeature.ServiceUnavailable) as cm:
            service.layers
        self.assertIn("404", str(cm.exception))
    def testServerErrorMessage(self):
        self.opener.routes[SERVICE_PATH] = fakeserver.error(
                                                499, "Token Required")
        with self.assertRaises(arcfeature.ServerError) as cm:
            self.service.layers
        self.assertEqual(cm.exception.code, 499)
        self.assertIsInstance(cm.exception, arcfeature.ServiceUnavailable)
    def testMalformedMetadata(self):
        bad_responses = [b"<html><body>Sign in</body></html>",
                         b"[1, 2, 3]",
                         {"layers": {"id": 0}},
                         {"layers": [{"name": "No id"}]},
                         {"layers": [{"id": "0", "name": "String id"}]},
                         {"layers": [{"id": 0, "name": "Odd",
                                      "geometryType": "esriGeometryBlob"}]}]
        for response in bad_responses:
            self.opener.routes[SERVICE_PATH] = response
            with self.assertRaises(arcfeature.MalformedMetadata):
                arcfeature.FeatureService(SERVICE_URL).layers

class LayerTests(FakeServerTestCase):
    def testGetLayer(self):
        layer = self.service.layer(1)
        self.assertIsInstance(layer, arcfeature.FeatureLayer)
        self.assertEqual((layer.id, layer.name), (1, 'Observed Position'))
        self.assertIs(layer.geometryType, arcfeature.Point)
        self.assertEqual(layer.url, SERVICE_URL + '/1/?f=json')
        self.assertIs(layer.parent, self.service)
        # Only the service description was needed so far
        self.assertEqual(len(self.opener.requests), 1)
    def testLayerHandlesAreShared(self):
        self.assertIs(self.service.layer(1), self.service.layer("1"))
        self.assertIs(self.service[1], self.service.layer(1))
    def testLayerNotFound(self):
        for layer_id in (3, 99, -1, 1.7, 1.0, "abc", "1.7", None, True):
            with self.assertRaises(arcfeature.LayerNotFound):
                self.service.layer(layer_id)
        self.assertTrue(issubclass(arcfeature.LayerNotFound, LookupError))
    def testLayerByName(self):
        self.assertEqual(self.service.layerByName('Forecast Track').id, 2)
        self.assertEqual(self.service.layerByName('Storm Names').id, 5)
        with self.assertRaises(arcfeature.LayerNotFound):
            self.service.layerByName('Nope')
    def testTableLayer(self):
        table = self.service.layer(5)
        self.assertIsNone(table.geometryType)
        result = table.Query()
        self.assertEqual([f['NAME'] for f in result],
                         ['Djoungou', 'Eleanor'])
        for feature in result:
            self.assertIsInstance(feature.geometry, arcfeature.NullGeometry)
    def testLayerFromUrl(self):
        layer = arcfeature.FeatureLayer(SERVICE_URL + "/1")
        self.assertEqual(self.opener.requests, [])
        self.assertEqual(layer.id, 1)
        self.assertIs(layer.geometryType, arcfeature.Point)
        self.assertEqual(len(layer.Query(['STORMNAME'])), 4)
    def testLayerMetadata(self):
        layer = self.service.layer(1)
        self.assertEqual(layer.displayField, 'STORMNAME')
        self.assertEqual(layer.objectIdField, 'OBJECTID')
        self.assertEqual(layer.maxRecordCount, 2000)
        self.assertTrue(layer.supportsPagination)
        self.assertIsInstance(layer.extent, arcfeature.Envelope)
        self.assertIn((62.4, -17.6), layer.extent)

class FieldCatalogTests(FakeServerTestCase):
    def testFields(self):
        catalog = self.service.layer(1).fields
        self.assertEqual(catalog.names,
                         ['OBJECTID', 'STORMNAME', 'INTENSITY', 'PRESSURE',
                          'YEAR', 'MONTH', 'DAY', 'HHMM', 'DTG'])
        self.assertEqual([field.type.name for field in catalog],
                         ['ObjectID', 'String', 'Integer', 'Double',
                          'Integer', 'Integer', 'Integer', 'String', 'Date'])
        self.assertEqual(catalog['stormname'].alias, 'Storm Name')
    def testFieldsFetchedOnce(self):
        layer = self.service.layer(1)
        layer.fields
        layer.fields
        self.service.layer(1).fields
        self.assertEqual(len(self.opener.requests_to(SERVICE_PATH + "1/")),
                         1)
    def testMalformedFields(self):
        bad_fields = [[{"name": "A", "type": "esriFieldTypeString"},
                       {"name": "a", "type": "esriFieldTypeInteger"}],
                      [{"name": "A", "type": "esriFieldTypeNope"}],
                      [{"name": "A"}],
                      {"name": "A", "type": "esriFieldTypeString"}]
        for fields in bad_fields:
            layer_json = dict(fakeserver.OBSERVED_JSON, fields=fields)
            self.opener.routes[SERVICE_PATH + "1/"] = layer_json
            service = arcfeature.FeatureService(SERVICE_URL)
            with self.assertRaises(arcfeature.MalformedMetadata):
                service.layer(1).fields

class QueryTests(FakeServerTestCase):
    def setUp(self):
        super(QueryTests, self).setUp()
        self.layer = self.service.layer(1)
    def testDjoungouScenario(self):
        result = self.layer.Query(SIX_FIELDS,
                                  where="STORMNAME = 'Djoungou'")
        self.assertEqual(len(result), 2)
        self.assertEqual(result.columns, SIX_FIELDS)
        for feature in result:
            self.assertEqual(set(feature.attributes), set(SIX_FIELDS))
            self.assertEqual(feature['STORMNAME'], 'Djoungou')
            self.assertIsInstance(feature.geometry, arcfeature.Point)
            self.assertEqual(len(list(feature.geometry)), 2)
        query = self.opener.requests_to(QUERY_PATH)[0].params
        self.assertEqual(query['where'], "STORMNAME = 'Djoungou'")
        self.assertEqual(query['outFields'], ",".join(SIX_FIELDS))
        self.assertEqual(query['returnGeometry'], 'true')
    def testFieldsFromGenerator(self):
        result = self.layer.Query(name for name in SIX_FIELDS)
        self.assertEqual(result.columns, SIX_FIELDS)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0]
                                    .params['outFields'], ",".join(SIX_FIELDS))
        for feature in result:
            self.assertEqual(list(feature.attributes), SIX_FIELDS)
    def testStarInList(self):
        result = self.layer.Query(iter(['*']))
        self.assertEqual(result.columns, self.layer.fields.names)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0]
                                    .params['outFields'], '*')
    def testSetOfFields(self):
        result = self.layer.Query(set(SIX_FIELDS),
                                  where="STORMNAME = 'Djoungou'")
        for feature in result:
            self.assertEqual(set(feature.attributes), set(SIX_FIELDS))
    def testAllFieldsAllRecords(self):
        result = self.layer.Query()
        self.assertEqual(len(result), 4)
        self.assertEqual(result.fields, self.layer.fields)
        query = self.opener.requests_to(QUERY_PATH)[0].params
        self.assertEqual((query['where'], query['outFields']), ('1=1', '*'))
        for feature in result:
            self.assertEqual(list(feature.attributes),
                             self.layer.fields.names)
        first = result[0]
        self.assertEqual(first['OBJECTID'], 1)
        self.assertEqual(first['INTENSITY'], 35)
        self.assertEqual(first['PRESSURE'], 1001.5)
        self.assertEqual(first['DTG'],
                         datetime.datetime(2024, 2, 15, 6, 0,
                                           tzinfo=datetime.timezone.utc))
        self.assertIsNone(result[3]['PRESSURE'])
        self.assertFalse(result.exceededTransferLimit)
        self.assertEqual(result.spatialReference, 4326)
        self.assertIs(result.geometryType, arcfeature.Point)
    def testFieldNamesAreMatchedWithoutCase(self):
        result = self.layer.Query("stormname, Intensity")
        self.assertEqual(result.columns, ['STORMNAME', 'INTENSITY'])
        self.assertEqual(set(result[0].attributes), {'STORMNAME', 'INTENSITY'})
    def testUnknownFieldFailsBeforeQuery(self):
        with self.assertRaises(arcfeature.InvalidFieldName) as cm:
            self.layer.Query(['STORMNAME', 'WINDSPEED', 'GUST'])
        self.assertEqual(cm.exception.names, ['WINDSPEED', 'GUST'])
        self.assertEqual(self.opener.requests_to(QUERY_PATH), [])
    def testRejectedWhere(self):
        with self.assertRaises(arcfeature.QueryRejected) as cm:
            self.layer.Query(where="STORMNAME LIKE")
        self.assertEqual(cm.exception.code, 400)
        self.assertEqual(cm.exception.details,
                         ["'where' parameter is invalid"])
    def testRejectedWithHttpStatus(self):
        self.opener.routes[QUERY_PATH] = urllib.error.HTTPError(
                    QUERY_PATH, 400, "Bad Request", {},
                    io.BytesIO(
                        b'{"error": {"code": 400, "message": "Invalid query"}}'))
        with self.assertRaises(arcfeature.QueryRejected):
            self.layer.Query()
    def testWhereIsPassedThroughUntouched(self):
        where = "YEAR >= 2020 AND (INTENSITY > 40 OR STORMNAME <> 'X')"
        with self.assertRaises(arcfeature.QueryRejected):
            self.layer.Query(where=where)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0]
                                    .params['where'], where)
    def testNoMatchesIsEmpty(self):
        result = self.layer.Query(SIX_FIELDS, where="1=0")
        self.assertEqual(len(result), 0)
        self.assertEqual(result.features, [])
        self.assertEqual(result.rows(), [])
    def testIdempotent(self):
        def values(result):
            return Counter(tuple(sorted(f.attributes.items()))
                           for f in result)
        first = self.layer.Query(SIX_FIELDS)
        second = self.layer.Query(SIX_FIELDS)
        self.assertEqual(values(first), values(second))
    def testNoGeometry(self):
        result = self.layer.Query(['STORMNAME'], returnGeometry=False)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0]
                                    .params['returnGeometry'], 'false')
        for feature in result:
            self.assertIsInstance(feature.geometry, arcfeature.NullGeometry)
    def testNullGeometry(self):
        records = [dict(fakeserver.OBSERVED[0], geometry=None),
                   dict(fakeserver.OBSERVED[1],
                        geometry={"x": "NaN", "y": "NaN"})]
        self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                            fakeserver.OBSERVED_JSON, records)
        for feature in self.layer.Query():
            self.assertIsInstance(feature.geometry, arcfeature.NullGeometry)
            self.assertFalse(feature.geometry)
    def testWrongGeometryShape(self):
        bad_geometries = [{"paths": [[[1, 2], [3, 4]]]},
                          {"x": 1},
                          {"x": "east", "y": 2}]
        for geom in bad_geometries:
            records = [dict(fakeserver.OBSERVED[0], geometry=geom)]
            self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                            fakeserver.OBSERVED_JSON, records)
            with self.assertRaises(arcfeature.MalformedMetadata):
                self.layer.Query()
    def testBadAttributeValue(self):
        # Integers must not be truncated
        for intensity in ("strong", 35.5):
            record = {"attributes": dict(fakeserver.OBSERVED[0]["attributes"],
                                         INTENSITY=intensity),
                      "geometry": {"x": 1, "y": 2}}
            self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                            fakeserver.OBSERVED_JSON, [record])
            with self.assertRaises(arcfeature.MalformedMetadata):
                self.layer.Query()
    def testPolylineAndPolygonLayers(self):
        track = self.service.layer(2).Query()
        self.assertIsInstance(track[0].geometry, arcfeature.Polyline)
        self.assertEqual(len(track[0].geometry.paths), 1)
        self.assertEqual(len(track[0].geometry.paths[0]), 3)
        cone = self.service.layer(4).Query()
        self.assertIsInstance(cone[0].geometry, arcfeature.Polygon)
        self.assertTrue(all(len(ring) for ring in cone[0].geometry.rings))
    def testEmptyPathsAreRejected(self):
        tracks = [{"attributes": {"OBJECTID": 1, "STORMNAME": "X"},
                   "geometry": {"paths": []}}]
        self.opener.routes[SERVICE_PATH + "2/query"] = \
            fakeserver.QueryHandler(fakeserver.TRACK_JSON, tracks)
        with self.assertRaises(arcfeature.MalformedMetadata):
            self.service.layer(2).Query()
    def testTruncatedResult(self):
        self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                fakeserver.OBSERVED_JSON, fakeserver.OBSERVED,
                                limit=3)
        result = self.layer.Query()
        self.assertEqual(len(result), 3)
        self.assertTrue(result.exceededTransferLimit)
        self.assertEqual(len(self.opener.requests_to(QUERY_PATH)), 1)
    def testPaginate(self):
        self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                fakeserver.OBSERVED_JSON, fakeserver.OBSERVED,
                                limit=3)
        result = self.layer.Query(SIX_FIELDS, paginate=True)
        self.assertEqual(len(result), 4)
        self.assertFalse(result.exceededTransferLimit)
        pages = [request.params for request in
                 self.opener.requests_to(QUERY_PATH)]
        self.assertEqual([(page['resultOffset'], page['resultRecordCount'])
                          for page in pages],
                         [('0', '2000'), ('3', '2000')])
        self.assertEqual(pages[0]['orderByFields'], 'OBJECTID ASC')
    def testPaginateWithPageSize(self):
        result = self.layer.Query(['STORMNAME'], paginate=True, pageSize=2)
        self.assertEqual([f['STORMNAME'] for f in result],
                         ['Djoungou', 'Djoungou', 'Eleanor', 'Faraji'])
        self.assertEqual(len(self.opener.requests_to(QUERY_PATH)), 2)
    def testFailedPageGivesNoPartialResult(self):
        self.opener.routes[QUERY_PATH] = fakeserver.QueryHandler(
                                fakeserver.OBSERVED_JSON, fakeserver.OBSERVED,
                                limit=2, fail_at_offset=2)
        with self.assertRaises(arcfeature.ServerError) as cm:
            self.layer.Query(paginate=True, pageSize=2)
        self.assertNotIsInstance(cm.exception, arcfeature.QueryRejected)
        self.assertEqual(cm.exception.code, 500)
    def testTokenErrorIsNotARejection(self):
        for code in (498, 499):
            self.opener.routes[QUERY_PATH] = fakeserver.error(
                                                code, "Invalid Token")
            with self.assertRaises(arcfeature.ServerError) as cm:
                self.layer.Query(SIX_FIELDS)
            self.assertIsInstance(cm.exception, arcfeature.ServiceUnavailable)
            self.assertNotIsInstance(cm.exception, arcfeature.QueryRejected)
            self.assertEqual(cm.exception.code, code)
    def testQueryTransportFailures(self):
        failures = [urllib.error.URLError("Connection refused"),
                    socket.timeout("timed out"),
                    urllib.error.HTTPError(QUERY_PATH, 503,
                                           "Service Unavailable", {},
                                           io.BytesIO(b"<html>503</html>"))]
        for failure in failures:
            self.opener.routes[QUERY_PATH] = failure
            with self.assertRaises(arcfeature.ServiceUnavailable) as cm:
                self.layer.Query(SIX_FIELDS)
            self.assertNotIsInstance(cm.exception, arcfeature.QueryRejected)
    def testLongQueriesArePosted(self):
        where = "STORMNAME = 'Djoungou'" + " " * (server.MAX_GET_LENGTH + 10)
        result = self.layer.Query(SIX_FIELDS, where=where)
        self.assertEqual(len(result), 2)
        request = self.opener.requests_to(QUERY_PATH)[0]
        self.assertEqual(request.method, 'POST')
        self.assertEqual(request.params['where'], where)
        self.assertEqual(request.params['f'], 'json')
    def testQueryTimeout(self):
        self.layer.Query(['STORMNAME'], timeout=3)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0].timeout, 3)
    def testQueryCount(self):
        self.assertEqual(self.layer.QueryCount(), 4)
        self.assertEqual(self.layer.QueryCount("STORMNAME = 'Djoungou'"), 2)
        self.assertEqual(self.opener.requests_to(QUERY_PATH)[0]
                                    .params['returnCountOnly'], 'true')

class FeatureSetTests(FakeServerTestCase):
    def setUp(self):
        super(FeatureSetTests, self).setUp()
        self.result = self.service.layer(1).Query(
                                SIX_FIELDS, where="STORMNAME = 'Djoungou'")
    def testRows(self):
        rows = self.result.rows()
        self.assertEqual(rows[0], ('Djoungou', 35, 2024, 2, 15, '0600'))
        self.assertEqual(rows[1].INTENSITY, 55)
        self.assertEqual(self.result.rows(['hhmm', 'STORMNAME'])[1],
                         ('1200', 'Djoungou'))
        with self.assertRaises(arcfeature.InvalidFieldName):
            self.result.rows(['PRESSURE'])
    def testGeoInterface(self):
        collection = self.result.__geo_interface__
        self.assertEqual(collection['type'], 'FeatureCollection')
        self.assertEqual(len(collection['features']), 2)
        feature = collection['features'][0]
        self.assertEqual(feature['type'], 'Feature')
        self.assertEqual(feature['geometry'],
                         {'type': 'Point', 'coordinates': (62.4, -17.6)})
        self.assertEqual(feature['properties']['STORMNAME'], 'Djoungou')
    def testRepr(self):
        self.assertIn("2 features", repr(self.result))

if __name__ == "__main__":
    unittest.main()
