# Models module for TixHub API
from tixhub.models.event import (
    EventCategory, EventStatus, Venue, TicketType, TicketTypeCreate, TicketTypePublic,
    EventCreate, EventSummary, EventDetail, FavoriteToggle,
    Review, ReviewCreate, ReviewList
)
from tixhub.models.cart import (
    CartItem, CartItemCreate, CartItemUpdate, CartResponse
)
from tixhub.models.promo_code import (
    PromoCode, PromoCodeCreate, PromoEvaluation, PromoCodeValidation,
    ValidatePromoCodeRequest, DiscountType, RejectionReason
)
from tixhub.models.order import (
    Order, OrderStatus, CheckoutRequest, CheckoutPreviewRequest, CheckoutPreview,
    CheckoutResponse, EventOrderBreakdown, VerifyPaymentRequest, PaymentVerificationResponse
)
from tixhub.models.ticket import (
    MyTicket, TicketStatus, TicketQRResponse, TicketLookupRequest, TicketLookup,
    CheckInResult, CheckInResponse
)
from tixhub.models.seller import (
    Seller, SellerApply, SellerTier, DashboardStats,
    DailySales, CategoryRevenue, EventRevenue, SellerAnalytics
)
from tixhub.models.recommendation import (
    UserPreferences, UserPreferencesUpdate, RecommendationResponse
)
