from prometheus_client import Counter


messages_sent_total = Counter(
    "messages_sent_total",
    "Total number of chat messages stored",
    ["kind"],
)

realtime_broadcast_failures_total = Counter(
    "realtime_broadcast_failures_total",
    "Channel layer sends that raised",
    ["event"],
)
