"""HTML fixtures shared by the extractor and service tests"""

AMAZON_URL = "https://www.amazon.com/Amazon-Basics-Plastic-Hangers-Clothes/dp/B07ABC1234"

AMAZON_HTML = """
<html><head>
<title>Amazon.com: Amazon Basics Plastic Hangers for Clothes, 30-Pack : Home &amp; Kitchen</title>
</head><body>
<div id="wayfinding-breadcrumbs_feature_div"><ul>
  <li><a href="/home-garden">Home &amp; Kitchen</a></li>
  <li><a href="/storage">Storage &amp; Organization</a></li>
</ul></div>
<span id="productTitle" class="a-size-large product-title-word-break">
  Amazon Basics Plastic Hangers for Clothes, 30-Pack, Black
</span>
<a id="bylineInfo" href="/stores/AmazonBasics">Visit the Amazon Basics Store</a>
<span id="acrPopover" title="4.5 out of 5 stars"><span class="a-icon-alt">4.5 out of 5 stars</span></span>
<span id="acrCustomerReviewText">12,345 ratings</span>
<div class="a-section"><span class="a-price"><span class="a-offscreen">$19.99</span></span></div>
<div class="a-section">List: <span class="a-text-strike">$39.99</span></div>
<div id="availability"><span class="a-size-medium a-color-success">In Stock</span></div>
<div id="feature-bullets"><ul>
  <li><span class="a-list-item">Pack of 30 slim, space-saving hangers</span></li>
  <li><span class="a-list-item">Notched shoulders keep clothes in place</span></li>
</ul></div>
<div class="imgTagWrapper">
  <img id="landingImage"
       src="https://m.media-amazon.com/images/I/71abc._AC_SX425_.jpg"
       data-old-hires="https://m.media-amazon.com/images/I/71abc._AC_SL1500_.jpg">
</div>
<script>
var data = {"colorImages": {"initial": [{"hiRes":"https://m.media-amazon.com/images/I/81xyz._AC_SL1500_.jpg","large":"https://m.media-amazon.com/images/I/81xyz._AC_.jpg"}]}};
</script>
</body></html>
"""

GENERIC_HTML = """
<html><head>
<title>Trail Runner 2 Hiking Shoes | Peak Outfitters</title>
<meta property="og:title" content="Trail Runner 2 Hiking Shoes">
<meta property="og:image" content="//cdn.peak.example/img/trail-runner.jpg">
<meta name="twitter:image" content="https://cdn.peak.example/img/trail-runner-side.png?v=2">
<meta name="description" content="Lightweight trail shoes with a grippy outsole for muddy climbs.">
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "Product",
 "name": "Trail Runner 2 Hiking Shoes",
 "brand": {"@type": "Brand", "name": "Peak Outfitters"},
 "category": "Footwear > Hiking",
 "image": ["https://cdn.peak.example/img/trail-runner.jpg", "https://cdn.peak.example/img/trail-runner-back.webp"],
 "offers": {"@type": "Offer", "price": "89.50", "priceCurrency": "USD", "availability": "https://schema.org/InStock"},
 "aggregateRating": {"@type": "AggregateRating", "ratingValue": "4.7", "reviewCount": "1,204"}}
</script>
</head><body>
<h1>Trail Runner 2 Hiking Shoes</h1>
<span class="price">$89.50</span> <span class="was-price">$120.00</span>
<div class="gallery">
  <img src="/img/logo.svg">
  <img data-src="https://cdn.peak.example/img/trail-runner-top.jpg">
</div>
</body></html>
"""

WALMART_HTML = """
<html><body>
<h1 data-testid="product-title" id="main-title">Ninja Professional Blender 1000W</h1>
<script id="__NEXT_DATA__" type="application/json">
{"product": {"name": "Ninja Professional Blender 1000W", "brand": "Ninja",
 "priceInfo": {"currentPrice": {"price": 79.0, "priceString": "$79.00"},
               "wasPrice": {"price": 99.0, "priceString": "$99.00"}},
 "averageRating": 4.6, "numberOfReviews": 3210, "availabilityStatus": "IN_STOCK",
 "categoryPathName": "Home Page/Home/Kitchen & Dining/Blenders"}}
</script>
</body></html>
"""

TARGET_HTML = """
<html><body>
<h1 data-test="product-title">Threshold Woven Storage Basket, Large</h1>
<script>
window.__TGT_DATA__ = {"price": {"current_retail": 24.0, "reg_retail": 30.0, "formatted_current_price": "$24.00"},
 "ratings_and_reviews": {"statistics": {"rating": {"average": 4.8, "count": 512}}},
 "availability_status": "OUT_OF_STOCK"};
</script>
</body></html>
"""
