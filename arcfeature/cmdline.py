# coding: utf-8
"""Command line tools for looking into feature services: list a service's
   layers, list a layer's fields and run a query on a layer."""

import argparse
import datetime
import json
import logging
import os
import sys

from . import FeatureService

__all__ = ['featurelayers', 'featurefields', 'featurequery']

PROG_NAME = os.path.basename(sys.argv[0])

shared_args = argparse.ArgumentParser(prog=PROG_NAME, add_help=False)
shared_args.add_argument('service',
                         help='Description: URL of the feature service, '
                              'e.g. https://host/arcgis/rest/services/'
                              'Name/FeatureServer')
shared_args.add_argument('-t', '--token',
                         required=False,
                         default=os.environ.get('ARCGIS_TOKEN'),
                         help='Description: Token to send with every request '
                              '(defaults to the ARCGIS_TOKEN environment '
                              'variable)')
shared_args.add_argument('--referer',
                         required=False,
                         default=None,
                         help='Description: Referer header to send')
shared_args.add_argument('--timeout',
                         required=False,
                         type=float,
                         default=None,
                         help='Description: Seconds to wait for each response')
shared_args.add_argument('-v', '--verbose',
                         default=False,
                         action='store_true',
                         help='Description: Log every request to stderr')

layer_args = argparse.ArgumentParser(add_help=False)
layer_args.add_argument('layer',
                        help='Description: Id or name of the layer')

class ActionNarrator(object):
    def __init__(self):
        self.action_stack = []
    def __call__(self, action):
        self.action = action
        return self
    def __enter__(self):
        self.action_stack.append(self.action)
    def __exit__(self, t, ex, tb):
        action = self.action_stack.pop()
        if (t, ex, tb) != (None, None, None):
            if t is not SystemExit:
                print("Error {0}: {1}".format(action, str(ex)),
                      file=sys.stderr)
            sys.exit(1)

def provide_narration(fn):
    def fn_(argv=None):
        return fn(ActionNarrator(), argv)
    fn_.__name__ = fn.__name__
    fn_.__doc__ = fn.__doc__
    return fn_

def configure_logging(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(asctime)s - %(name)s - %(levelname)s - "
                               "%(message)s",
                        stream=sys.stderr)

def open_service(action, args):
    with action("opening feature service {0}".format(args.service)):
        return FeatureService(args.service, token=args.token,
                              referer=args.referer, timeout=args.timeout)

def find_layer(action, service, layer):
    with action("looking up layer {0}".format(layer)):
        if layer.isdigit():
            return service.layer(int(layer))
        return service.layerByName(layer)

def format_value(value):
    if value is None:
        return ''
    elif isinstance(value, (datetime.datetime, datetime.date,
                            datetime.time)):
        return value.isoformat()
    return str(value).replace('\t', ' ').replace('\n', ' ')

def json_default(value):
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    raise TypeError("%r is not JSON serializable" % (value,))

featurelayersargs = argparse.ArgumentParser(prog=PROG_NAME,
                                            description='Lists the layers and '
                                                        'tables of a feature '
                                                        'service',
                                            parents=[shared_args])
featurelayersargs._optionals.title = "arguments"

@provide_narration
def featurelayers(action, argv):
    args = featurelayersargs.parse_args(argv)
    configure_logging(args.verbose)
    service = open_service(action, args)
    with action("listing layers"):
        infos = service.layers + service.tables
    for info in infos:
        print("{0}\t{1}\t{2}".format(info.id, info.name,
                                     info.geometryType.__geometry_type__
                                        if info.geometryType
                                        else 'Table'))

featurefieldsargs = argparse.ArgumentParser(prog=PROG_NAME,
                                            description='Lists the fields of '
                                                        'a layer',
                                            parents=[shared_args, layer_args])
featurefieldsargs._optionals.title = "arguments"

@provide_narration
def featurefields(action, argv):
    args = featurefieldsargs.parse_args(argv)
    configure_logging(args.verbose)
    service = open_service(action, args)
    layer = find_layer(action, service, args.layer)
    with action("listing fields"):
        catalog = layer.fields
    for field in catalog:
        print("{0}\t{1}\t{2}".format(field.name, field.type.name,
                                     field.alias))

featurequeryargs = argparse.ArgumentParser(prog=PROG_NAME,
                                           description='Queries the features '
                                                       'of a layer',
                                           parents=[shared_args, layer_args])
featurequeryargs.add_argument('-f', '--fields',
                              nargs='+',
                              default=None,
                              help='Fields to return (all fields if not set)')
featurequeryargs.add_argument('-w', '--where',
                              default=None,
                              help='Where clause, e.g. "YEAR = 2020" '
                                   '(all features if not set)')
featurequeryargs.add_argument('--out-sr',
                              default=None,
                              help='WKID of the spatial reference to return '
                                   'geometries in')
featurequeryargs.add_argument('--paginate',
                              default=False,
                              action='store_true',
                              help='Page through results the server would '
                                   'otherwise truncate')
featurequeryargs.add_argument('--count',
                              default=False,
                              action='store_true',
                              help='Only print the number of matching '
                                   'features')
featurequeryargs.add_argument('--geojson',
                              default=False,
                              action='store_true',
                              help='Print a GeoJSON FeatureCollection instead '
                                   'of a tab-separated table')
featurequeryargs._optionals.title = "arguments"

@provide_narration
def featurequery(action, argv):
    args = featurequeryargs.parse_args(argv)
    configure_logging(args.verbose)
    service = open_service(action, args)
    layer = find_layer(action, service, args.layer)
    if args.count:
        with action("counting features"):
            print(layer.QueryCount(args.where))
        return
    with action("querying {0!r}".format(layer)):
        result = layer.Query(args.fields, args.where,
                             returnGeometry=args.geojson,
                             outSR=args.out_sr,
                             paginate=args.paginate)
    if result.exceededTransferLimit:
        print("Warning: the server returned only part of the result, "
              "use --paginate to fetch all of it", file=sys.stderr)
    if args.geojson:
        print(json.dumps(result.__geo_interface__, default=json_default))
    else:
        print("\t".join(result.columns))
        for row in result.rows():
            print("\t".join(format_value(value) for value in row))
