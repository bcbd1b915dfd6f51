# Routers module for TixHub API
from tixhub.routers import events
from tixhub.routers import cart
from tixhub.routers import promo_codes
from tixhub.routers import checkout
from tixhub.routers import tickets
from tixhub.routers import recommendations
from tixhub.routers import seller
