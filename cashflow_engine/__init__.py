"""
Cash Flow Engine

Modules:
- currency: currency codes + FX / rounding interfaces
- cash_flows: cash amounts with currency-aware arithmetic, dated cash flows
- rates: compounding + flat-rate discounting
- solvers: bracketed 1-D root finders
- fixed_income: yield to maturity + instrument interface
- bonds: fixed coupon bond cash flow rollout
- calendars: holiday rules + business-day walking
- time_series: quote histories + gap detection
- quotes: quote repository / market data interfaces, in-memory store
- market: market context + quote history updates
- utils: day count + schedule helpers
"""
