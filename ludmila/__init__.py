"""\
Ludmila
=======

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Ludmila is a small declarative API layer on top of a lightweight WSGI
(micro) web framework. Endpoints are described as plain data, grouped
into schemas and registered with the application, which wires up the
middleware chain, request validation and the controller call for each
one of them.
"""

from __future__ import annotations

from ludmila.app import Ludmila as Ludmila
from ludmila.context import RequestContext as RequestContext
from ludmila.controller import Controller as Controller
from ludmila.controller import ControllerFactory as ControllerFactory
from ludmila.exceptions import ApplicationError as ApplicationError
from ludmila.middleware import MiddlewareRegistry as MiddlewareRegistry
from ludmila.middleware import Priority as Priority
from ludmila.middleware import Proceed as Proceed
from ludmila.middleware import Redirect as Redirect
from ludmila.middleware import Reject as Reject
from ludmila.repository import ApiRepository as ApiRepository
from ludmila.schema import ApiSchema as ApiSchema
from ludmila.schema import EndpointDescriptor as EndpointDescriptor
from ludmila.schema import HandlerSpec as HandlerSpec
from ludmila.wrappers import Request as Request
from ludmila.wrappers import Response as Response

version: str = "18.10.2026"
