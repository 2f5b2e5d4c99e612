# coding: utf-8
"""Arcfeature is a Python binding to the query side of ArcGIS feature
   services: describe a service and its layers, list a layer's fields and
   fetch features filtered by a where clause, as typed attributes and
   geometries ready to be shown as a table or on a map.

   Getting Started with Arcfeature
   ===============================

   Opening a service does not talk to the server yet:

      >>> import arcfeature
      >>> service = arcfeature.FeatureService("https://services9.arcgis.com/RHVPKKiFTONKtxq3/arcgis/rest/services/Active_Hurricanes_v1/FeatureServer")
      >>> service.url
      'https://services9.arcgis.com/RHVPKKiFTONKtxq3/arcgis/rest/services/Active_Hurricanes_v1/FeatureServer/?f=json'

   Listing its layers fetches the service description, once:

      >>> service.layers
      [<LayerInfo 0 'Forecast Position' (Point)>, <LayerInfo 1 'Observed Position' (Point)>, ...]

   Getting a layer and its fields:

      >>> layer = service.layer(1)
      >>> layer.geometryType
      <class 'arcfeature.geometry.Point'>
      >>> layer.fields.names
      ['OBJECTID', 'STORMNAME', 'INTENSITY', 'YEAR', 'MONTH', 'DAY', 'HHMM', ...]

   Querying it:

      >>> result = layer.Query(['STORMNAME', 'INTENSITY', 'YEAR', 'MONTH',
      ...                       'DAY', 'HHMM'],
      ...                      where="STORMNAME = 'Djoungou'")
      >>> result[0]
      <Feature POINT(62.40000 -17.60000) {'STORMNAME': 'Djoungou', 'INTENSITY': 35, ...}>
      >>> result.rows()[0].INTENSITY
      35

   A FeatureSet and its features implement __geo_interface__, so they can be
   handed to anything that reads it, such as geopandas'
   GeoDataFrame.from_features.
   """

from arcfeature.errors import *
from arcfeature.geometry import *
from arcfeature.fields import *
from arcfeature.server import *
