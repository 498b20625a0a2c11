# Constants for the hybrid recommendation engine.
ALGORITHM_NAME = "hybrid_content_collaborative_trending_personalized"
ALGORITHM_ERROR = "error"

# Recommendation kinds
KIND_SIMILAR = "similar"            # Substitutable products per attributes
KIND_TRENDING = "trending"          # High engagement in the trending window
KIND_PERSONALIZED = "personalized"  # Matches the user's derived preferences
KIND_COLLABORATIVE = "collaborative"  # Liked by behaviorally similar users
KIND_CROSS_SELL = "cross_sell"      # Same-category complements
KIND_UP_SELL = "up_sell"            # Same-category, higher-priced alternatives

# Confidence multiplier per kind (how much each signal is trusted)
CONFIDENCE_FACTORS = {
    KIND_SIMILAR: 0.9,
    KIND_TRENDING: 0.8,
    KIND_PERSONALIZED: 0.85,
    KIND_COLLABORATIVE: 0.75,
    KIND_CROSS_SELL: 0.8,
    KIND_UP_SELL: 0.7,
}
DEFAULT_CONFIDENCE_FACTOR = 0.5

# Similarity
SIMILARITY_THRESHOLD = 0.7
SIMILARITY_TOP_K = 5
SIM_CATEGORY_WEIGHT = 0.4
SIM_PRICE_WEIGHT = 0.2
SIM_BRAND_WEIGHT = 0.3
SIM_TAGS_WEIGHT = 0.1
PRICE_BAND = (0.7, 1.3)

# Collaborative filtering
COLLABORATIVE_MIN_SCORE = 0.5
COLLABORATIVE_TOP_K = 5
NEIGHBOUR_LIMIT = 50
USER_SIMILARITY_THRESHOLD = 0.1

# Trending
TRENDING_THRESHOLD = 10  # strictly more views than this in the window
TRENDING_TOP_K = 8
TRENDING_VIEW_NORM = 100
TRENDING_PURCHASE_NORM = 50

# Personalization
PERSONALIZATION_MIN_SCORE = 0.3
PERSONALIZATION_TOP_K = 5
PREFERENCE_TOP_N = 3
PERS_CATEGORY_WEIGHT = 0.4
PERS_BRAND_WEIGHT = 0.3
PERS_PRICE_WEIGHT = 0.2

# Cross-sell / up-sell
CROSS_SELL_BASE = 0.5
CROSS_SELL_PAIR_BONUS = 0.2
CROSS_SELL_MIN_SCORE = 0.4
CROSS_SELL_TOP_K = 3
UP_SELL_MAX_PRICE_SCORE = 0.5
UP_SELL_SPEC_BONUS = 0.1
UP_SELL_MIN_SCORE = 0.3
UP_SELL_TOP_K = 3

# Behavior history bounds
VIEW_HISTORY_LIMIT = 50
PURCHASE_HISTORY_LIMIT = 20
