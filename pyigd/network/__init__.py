from pyigd.network.envelope import SoapRequest, build_request, make_body, make_header
from pyigd.network.parser import child_text, parse_response
from pyigd.network.requester import run_blocking, send, send_async
